"""Risk classification for tool invocations.

Provides the data-driven rule table that decides which agent actions must
pass the approval gate before they run:

- shell commands matching a dangerous-command rule, and
- file writes/edits that target a sensitive path.

The table is plain data (pattern, category, weight) so it can be replaced
or extended without touching the orchestrator. Anything the classifier
does not flag is allowed to proceed.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 500


class RiskCategory(StrEnum):
    """Action categories that require human approval."""

    DESTRUCTIVE_FS = "destructive_fs"
    PRIVILEGE = "privilege_escalation"
    VERSION_CONTROL = "version_control"
    DEPLOY = "production_deploy"
    DATABASE = "destructive_database"
    CODE_EXECUTION = "code_execution"
    PROCESS = "process_control"
    SERVICE = "service_management"
    SENSITIVE_PATH = "sensitive_path"
    URL_OPEN = "url_open"
    FILE_ATTRIBUTES = "file_attributes"
    ENVIRONMENT = "environment_hijack"
    MOUNT = "mount"
    REMOTE_SHELL = "remote_shell"
    CONTAINER = "container"
    PACKAGE_INSTALL = "package_install"


@dataclass(frozen=True)
class RiskRule:
    """One row of the rule table."""

    pattern: re.Pattern[str]
    category: RiskCategory
    weight: float = 1.0

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _rule(pattern: str, category: RiskCategory, *, flags: int = 0, weight: float = 1.0) -> RiskRule:
    return RiskRule(pattern=re.compile(pattern, flags), category=category, weight=weight)


_C = RiskCategory

DANGEROUS_COMMAND_RULES: tuple[RiskRule, ...] = (
    # Destructive file ops
    _rule(r"\brm\s", _C.DESTRUCTIVE_FS),
    _rule(r"\bmkfs\b", _C.DESTRUCTIVE_FS),
    _rule(r"\bdd\s", _C.DESTRUCTIVE_FS),
    # Privilege escalation
    _rule(r"\bsudo\s", _C.PRIVILEGE),
    _rule(r"\bchmod\s", _C.PRIVILEGE, weight=0.5),
    _rule(r"\bchown\s", _C.PRIVILEGE, weight=0.5),
    _rule(r"\bsu\s", _C.PRIVILEGE),
    # Irreversible git
    _rule(r"force[\s-]*push", _C.VERSION_CONTROL, flags=re.I),
    _rule(r"--force", _C.VERSION_CONTROL),
    _rule(r"git\s+reset\s+--hard", _C.VERSION_CONTROL, flags=re.I),
    # Production deploys
    _rule(r"\bdeploy\b.*prod", _C.DEPLOY, flags=re.I),
    # Database destruction
    _rule(r"\bDROP\s", _C.DATABASE, flags=re.I),
    _rule(r"\bDELETE\s+FROM\b", _C.DATABASE, flags=re.I),
    _rule(r"\bTRUNCATE\s", _C.DATABASE, flags=re.I),
    # Arbitrary code execution via shell tricks
    _rule(r"curl\s+.*[|;]\s*(ba)?sh", _C.CODE_EXECUTION, flags=re.I),
    _rule(r"wget\s+.*[|;]\s*(ba)?sh", _C.CODE_EXECUTION, flags=re.I),
    _rule(r"\beval\s*[(`]", _C.CODE_EXECUTION),
    _rule(r"base64\s+-d\s*.*[|;]\s*(ba)?sh", _C.CODE_EXECUTION, flags=re.I),
    _rule(r"\bpython[23]?\s+-c\b", _C.CODE_EXECUTION),
    _rule(r"\bnode\s+-e\b", _C.CODE_EXECUTION),
    _rule(r"\bbun\s+-e\b", _C.CODE_EXECUTION),
    _rule(r"\bperl\s+-e\b", _C.CODE_EXECUTION),
    _rule(r"\bruby\s+-e\b", _C.CODE_EXECUTION),
    _rule(r"\bphp\s+-r\b", _C.CODE_EXECUTION),
    # Process / system manipulation
    _rule(r"\bkill\s+-9\b", _C.PROCESS),
    _rule(r"\bpkill\b", _C.PROCESS),
    _rule(r"\bkillall\b", _C.PROCESS),
    _rule(r"\bcrontab\s+-[re]\b", _C.PROCESS),
    # Service management
    _rule(r"\blaunchctl\s+(load|unload|remove)\b", _C.SERVICE),
    _rule(r"\bsystemctl\s+(start|stop|enable|disable)\b", _C.SERVICE),
    # Shell redirects to sensitive paths
    _rule(r">\s*~/\.ssh/", _C.SENSITIVE_PATH),
    _rule(r">\s*~/\.bashrc", _C.SENSITIVE_PATH),
    _rule(r">\s*~/\.zshrc", _C.SENSITIVE_PATH),
    _rule(r">\s*/etc/", _C.SENSITIVE_PATH),
    # URL opening (phishing / exfiltration)
    _rule(r"\bopen\s+https?://", _C.URL_OPEN, weight=0.5),
    _rule(r"\bxdg-open\b", _C.URL_OPEN, weight=0.5),
    # Permission / attribute manipulation
    _rule(r"\bsetfacl\b", _C.FILE_ATTRIBUTES),
    _rule(r"\bxattr\s+-wd?\b", _C.FILE_ATTRIBUTES),
    # Environment hijacking
    _rule(r"\bexport\s+PATH=", _C.ENVIRONMENT),
    _rule(r"\bexport\s+HOME=", _C.ENVIRONMENT),
    # Mounts
    _rule(r"\bmount\b", _C.MOUNT),
    _rule(r"\bumount\b", _C.MOUNT),
    # Remote code execution over ssh
    _rule(r"\bssh\s+.*&&", _C.REMOTE_SHELL),
    _rule(r"\bssh\s+.*[|;]", _C.REMOTE_SHELL),
    # Container escapes
    _rule(r"\bdocker\s+run\b", _C.CONTAINER),
    _rule(r"\bdocker\s+exec\b", _C.CONTAINER),
    # Package installs (arbitrary install scripts)
    _rule(r"\bnpm\s+install\b", _C.PACKAGE_INSTALL, weight=0.5),
    _rule(r"\bbun\s+add\b", _C.PACKAGE_INSTALL, weight=0.5),
    _rule(r"\bpip\s+install\b", _C.PACKAGE_INSTALL, weight=0.5),
)

SENSITIVE_PATH_PREFIXES: tuple[str, ...] = (
    "~/.ssh/",
    "~/.env",
    "~/.bashrc",
    "~/.zshrc",
    "~/.bash_profile",
    "~/.profile",
    "~/.gitconfig",
    "~/.claude/settings",
    "~/.claude/credentials",
    "/etc/",
    "~/.gnupg/",
    "~/.aws/",
    "~/.kube/",
)

SHELL_TOOLS: frozenset[str] = frozenset({"Bash"})
WRITE_TOOLS: frozenset[str] = frozenset({"Write", "Edit", "MultiEdit"})


@dataclass(frozen=True)
class ActionDescriptor:
    """A side-effecting action the agent wants to perform."""

    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)

    @property
    def command(self) -> str:
        return str(self.tool_input.get("command") or "")

    @property
    def file_path(self) -> str:
        return str(self.tool_input.get("file_path") or "")

    def describe(self) -> str:
        """Human-readable summary shown in approval prompts."""
        if self.tool_name in SHELL_TOOLS:
            text = f"$ {self.command}"
        elif self.file_path:
            text = f"{self.tool_name} → {self.file_path}"
        else:
            text = f"{self.tool_name}({self.tool_input})"
        if len(text) > MAX_DESCRIPTION_CHARS:
            text = text[:MAX_DESCRIPTION_CHARS] + "..."
        return text


@runtime_checkable
class RiskClassifier(Protocol):
    """Capability interface consumed by the permission gate."""

    def is_flagged(self, action: ActionDescriptor) -> bool: ...


class RuleTableClassifier:
    """RiskClassifier backed by regex rules and sensitive path prefixes."""

    def __init__(
        self,
        rules: tuple[RiskRule, ...] = DANGEROUS_COMMAND_RULES,
        sensitive_paths: tuple[str, ...] = SENSITIVE_PATH_PREFIXES,
        *,
        home: str | None = None,
    ):
        self.rules = rules
        self.sensitive_paths = sensitive_paths
        self.home = home if home is not None else os.path.expanduser("~")

    def add_rule(self, rule: RiskRule) -> None:
        """Extend the table at startup (e.g. site-specific commands)."""
        self.rules = (*self.rules, rule)
        logger.info("Registered risk rule %s (%s)", rule.pattern.pattern, rule.category)

    def matching_rules(self, command: str) -> list[RiskRule]:
        return [rule for rule in self.rules if rule.matches(command)]

    def is_dangerous_command(self, command: str) -> bool:
        return any(rule.matches(command) for rule in self.rules)

    def is_sensitive_path(self, file_path: str) -> bool:
        if not file_path:
            return False
        home = self.home
        expanded = home + file_path[1:] if file_path.startswith("~") else file_path
        with_tilde = file_path if file_path.startswith("~") or not home else file_path.replace(home, "~", 1)
        for prefix in self.sensitive_paths:
            expanded_prefix = home + prefix[1:] if prefix.startswith("~") else prefix
            if expanded.startswith(expanded_prefix) or with_tilde.startswith(prefix):
                return True
        return False

    def is_flagged(self, action: ActionDescriptor) -> bool:
        if action.tool_name in SHELL_TOOLS:
            return self.is_dangerous_command(action.command)
        if action.tool_name in WRITE_TOOLS:
            return self.is_sensitive_path(action.file_path)
        return False


_default_classifier = RuleTableClassifier()


def is_dangerous_command(command: str) -> bool:
    """Check a shell command against the default rule table."""
    return _default_classifier.is_dangerous_command(command)
