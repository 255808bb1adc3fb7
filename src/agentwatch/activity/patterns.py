"""Pattern library for agent state detection

Rules are named regexes scoped to an agent kind ("*" for all) and a
category. The library keeps them sorted by descending priority; ties keep
insertion order.

Concurrency: mutations (compile, add_pattern) hold a writer lock and
publish a new immutable tuple. Readers grab the current tuple without
locking, so a match in flight always sees one consistent, sorted list.
"""

import re
import threading
from dataclasses import dataclass, field, replace

from .. import config
from ..core.agents import WILDCARD_AGENT
from ..telemetry import get_logger, metrics
from .types import AgentState, PatternCategory, PatternMatch

logger = get_logger(__name__)

DEFAULT_LIBRARY_VERSION = config.DEFAULT_LIBRARY_VERSION


class PatternError(ValueError):
    """Base class for pattern library errors"""


class PatternCompileError(PatternError):
    """One or more pattern expressions failed to compile

    Attributes:
        failures: (pattern name, reason) for every failed rule
    """

    def __init__(self, failures: list[tuple[str, str]]):
        self.failures = list(failures)
        summary = "; ".join(f"{name}: {reason}" for name, reason in self.failures)
        super().__init__(f"{len(self.failures)} pattern(s) failed to compile: {summary}")


class DuplicatePatternError(PatternError):
    """A pattern with the same name is already in the library"""


@dataclass
class Pattern:
    """Single detection rule

    An empty regex is accepted and never matches. state defaults to the
    category's suggested state.
    """

    name: str
    regex: str
    category: PatternCategory
    agent: str = WILDCARD_AGENT  # "claude", "codex", "gemini", "*" for all
    priority: int = 0  # Higher = checked first
    state: AgentState | None = None
    description: str = ""
    compiled: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        self.category = PatternCategory(self.category)
        if self.state is None:
            self.state = self.category.default_state
        else:
            self.state = AgentState(self.state)

    def applies_to(self, agent_type: str) -> bool:
        """Whether this rule is evaluated for agent_type

        Wildcard rules apply everywhere; an empty agent_type only sees
        wildcard rules.
        """
        if self.agent in (WILDCARD_AGENT, ""):
            return True
        return self.agent == agent_type

    def search(self, content: str) -> bool:
        return self.compiled is not None and self.compiled.search(content) is not None

    def to_match(self) -> PatternMatch:
        return PatternMatch(
            pattern=self.name,
            state=self.state,
            category=self.category,
            priority=self.priority,
        )


def _p(name, regex, agent, category, priority, description) -> Pattern:
    return Pattern(
        name=name,
        regex=regex,
        category=category,
        agent=agent,
        priority=priority,
        description=description,
    )


def default_patterns() -> list[Pattern]:
    """Built-in rule set (fresh, uncompiled instances)"""
    idle = PatternCategory.IDLE
    error = PatternCategory.ERROR
    thinking = PatternCategory.THINKING
    completion = PatternCategory.COMPLETION
    return [
        # === Idle prompts ===
        _p("claude_prompt", r"(?i)claude\s*>?\s*$", "claude", idle, 100, "Claude prompt"),
        _p("claude_code_prompt", r"(?i)claude\s+code\s*>?\s*$", "claude", idle, 101, "Claude Code prompt"),
        _p("claude_arrow_prompt", r"╰─>\s*$", "claude", idle, 99, "Claude arrow prompt"),
        _p("codex_prompt", r"(?i)codex\s*>?\s*$", "codex", idle, 100, "Codex prompt"),
        _p("codex_dollar", r"\$\s*$", "codex", idle, 50, "Codex dollar prompt"),
        _p("gemini_prompt", r"(?i)gemini\s*>?\s*$", "gemini", idle, 100, "Gemini prompt"),
        _p("gemini_triple_arrow", r">>>\s*$", "gemini", idle, 90, "Gemini triple arrow prompt"),
        _p("shell_dollar", r"\$\s*$", "*", idle, 20, "Shell dollar prompt"),
        _p("shell_percent", r"%\s*$", "*", idle, 20, "Shell percent prompt"),
        _p("shell_hash", r"#\s*$", "*", idle, 20, "Shell hash prompt"),
        _p("generic_angle", r">\s*$", "*", idle, 10, "Generic angle prompt"),
        # === Errors: rate limits ===
        _p("rate_limit_text", r"(?i)rate\s+limit", "*", error, 200, "Rate limit text"),
        _p("http_429", r"\b429\b", "*", error, 200, "HTTP 429 status"),
        _p("too_many_requests", r"(?i)too\s+many\s+requests", "*", error, 200, "Too many requests"),
        _p("quota_exceeded", r"(?i)quota\s+exceeded", "*", error, 200, "Quota exceeded"),
        # === Errors: API ===
        _p("api_error", r"(?i)(?:api\s+)?error:\s*\S", "*", error, 180, "API error"),
        _p("exception", r"(?i)exception:\s*\S", "*", error, 180, "Exception"),
        _p("failed_text", r"(?i)\bfailed\b.*(?:to|with|:|$)", "*", error, 150, "Failed operation"),
        # === Errors: crashes ===
        _p("panic", r"(?im)^panic:", "*", error, 250, "Go panic"),
        _p("sigsegv", r"SIGSEGV", "*", error, 250, "Segmentation fault"),
        _p("sigkill", r"(?i)(?:killed|SIGKILL)", "*", error, 250, "Process killed"),
        _p(
            "process_exited",
            r"(?i)(?:process|agent)\s+(?:exited|terminated|crashed)",
            "*", error, 240, "Process exited",
        ),
        # === Errors: auth ===
        _p("unauthorized", r"(?i)unauthorized", "*", error, 190, "Unauthorized"),
        _p("invalid_key", r"(?i)invalid.*(?:api\s*)?key", "*", error, 190, "Invalid API key"),
        _p("auth_failed", r"(?i)authentication\s+(?:failed|error)", "*", error, 190, "Authentication failed"),
        # === Errors: network ===
        _p("connection_refused", r"(?i)connection\s+refused", "*", error, 170, "Connection refused"),
        _p("timeout_error", r"(?i)(?:connection|request)\s+timed?\s*out", "*", error, 170, "Timeout error"),
        _p("network_error", r"(?i)network\s+error", "*", error, 170, "Network error"),
        # === Thinking ===
        _p("braille_spinner", r"[⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏]", "*", thinking, 80, "Braille spinner"),
        _p("dots_spinner", r"\.{3,}$", "*", thinking, 70, "Dots spinner"),
        _p("thinking_text", r"(?i)thinking\.{0,3}$", "*", thinking, 85, "Thinking text"),
        _p("processing_text", r"(?i)processing\.{0,3}$", "*", thinking, 85, "Processing text"),
        _p("analyzing_text", r"(?i)analyzing\.{0,3}$", "*", thinking, 85, "Analyzing text"),
        _p(
            "extended_thinking",
            r"(?i)(?:thinking\s+deeply|extended\s+thinking)",
            "*", thinking, 90, "Extended thinking",
        ),
        _p("loading_text", r"(?i)loading\.{0,3}$", "*", thinking, 75, "Loading text"),
        _p("waiting_text", r"(?i)(?:please\s+)?wait(?:ing)?\.{0,3}$", "*", thinking, 75, "Waiting text"),
        # === Completion ===
        _p("done_text", r"(?i)(?:^|\s)done[.!]?\s*$", "*", completion, 60, "Done text"),
        _p(
            "complete_text",
            r"(?i)(?:^|\s)(?:completed?|finished)[.!]?\s*$",
            "*", completion, 60, "Complete/Finished text",
        ),
        _p("checkmark", r"[✓✔]\s*$", "*", completion, 65, "Checkmark symbol"),
        _p("summary_header", r"(?im)^(?:summary|changes\s+made):", "*", completion, 55, "Summary header"),
    ]


def _sort_by_priority(patterns: list[Pattern]) -> tuple[Pattern, ...]:
    # sorted() is stable with reverse=True, equal priorities keep insertion order
    return tuple(sorted(patterns, key=lambda p: p.priority, reverse=True))


class PatternLibrary:
    """Collection of detection rules

    Args:
        patterns: Initial rules, None loads default_patterns()
        version: Version tag of the rule set
        auto_compile: Compile on construction. Bad rules do not raise
            here: the good ones are kept and the failures are left in
            compile_errors

    Attributes:
        compile_errors: (pattern name, reason) from the latest compile()
    """

    def __init__(
        self,
        patterns: list[Pattern] | None = None,
        version: str = DEFAULT_LIBRARY_VERSION,
        auto_compile: bool = True,
    ):
        self.version = version
        self._lock = threading.Lock()
        initial = default_patterns() if patterns is None else [replace(p) for p in patterns]
        self._patterns: tuple[Pattern, ...] = tuple(initial)
        self._compiled = False
        self.compile_errors: list[tuple[str, str]] = []
        if auto_compile:
            try:
                self.compile()
            except PatternCompileError:
                pass  # already logged, kept in compile_errors

    @property
    def is_compiled(self) -> bool:
        """True once compile() succeeded for every rule"""
        return self._compiled

    # === Mutation ===

    def compile(self) -> None:
        """Compile every rule and re-sort by priority

        Valid rules are compiled even when others fail; all failures are
        reported together. Idempotent on an unchanged rule set.

        Raises:
            PatternCompileError: at least one expression is invalid
        """
        failures: list[tuple[str, str]] = []
        with self._lock:
            updated: list[Pattern] = []
            for pattern in self._patterns:
                if pattern.compiled is None and pattern.regex:
                    try:
                        pattern = replace(pattern, compiled=re.compile(pattern.regex))
                    except re.error as e:
                        failures.append((pattern.name, str(e)))
                updated.append(pattern)
            self._patterns = _sort_by_priority(updated)
            self._compiled = not failures
            self.compile_errors = list(failures)

        if failures:
            for name, reason in failures:
                logger.warning(f"[Patterns] Pattern '{name}' regex error: {reason}")
            metrics.inc("patterns.compile_failed", value=len(failures))
            raise PatternCompileError(failures)

    def add_pattern(self, pattern: Pattern) -> None:
        """Compile and insert a rule

        On failure nothing is changed.

        Raises:
            PatternCompileError: the expression does not compile
            DuplicatePatternError: a rule with this name exists
        """
        compiled = pattern.compiled
        if compiled is None and pattern.regex:
            try:
                compiled = re.compile(pattern.regex)
            except re.error as e:
                metrics.inc("patterns.rejected")
                raise PatternCompileError([(pattern.name, str(e))]) from e

        with self._lock:
            if any(p.name == pattern.name for p in self._patterns):
                metrics.inc("patterns.rejected")
                raise DuplicatePatternError(f"pattern '{pattern.name}' already exists")
            self._patterns = _sort_by_priority(
                [*self._patterns, replace(pattern, compiled=compiled)]
            )

        metrics.inc("patterns.added")
        logger.debug(
            f"[Patterns] Added '{pattern.name}' agent={pattern.agent} "
            f"category={pattern.category.value} priority={pattern.priority}"
        )

    # === Matching ===

    def match(self, content: str, agent_type: str) -> list[PatternMatch]:
        """Match content against every rule applicable to agent_type

        Returns:
            One PatternMatch per matching rule, in priority order
        """
        if not content:
            return []
        return [
            p.to_match()
            for p in self._patterns
            if p.applies_to(agent_type) and p.search(content)
        ]

    def match_first(self, content: str, agent_type: str) -> PatternMatch | None:
        """Highest-priority match, or None"""
        if not content:
            return None
        for p in self._patterns:
            if p.applies_to(agent_type) and p.search(content):
                return p.to_match()
        return None

    def match_by_category(
        self,
        content: str,
        agent_type: str,
        category: PatternCategory,
    ) -> list[PatternMatch]:
        """match() restricted to one category"""
        if not content:
            return []
        return [
            p.to_match()
            for p in self._patterns
            if p.category == category and p.applies_to(agent_type) and p.search(content)
        ]

    def _has_category(self, content: str, agent_type: str, category: PatternCategory) -> bool:
        if not content:
            return False
        return any(
            p.category == category and p.applies_to(agent_type) and p.search(content)
            for p in self._patterns
        )

    def has_error(self, content: str, agent_type: str) -> bool:
        return self._has_category(content, agent_type, PatternCategory.ERROR)

    def has_idle_prompt(self, content: str, agent_type: str) -> bool:
        return self._has_category(content, agent_type, PatternCategory.IDLE)

    def has_thinking_indicator(self, content: str, agent_type: str) -> bool:
        return self._has_category(content, agent_type, PatternCategory.THINKING)

    def has_completion_signal(self, content: str, agent_type: str) -> bool:
        return self._has_category(content, agent_type, PatternCategory.COMPLETION)

    # === Queries (copies) ===

    def get_patterns(self) -> list[Pattern]:
        """Copy of all rules, priority order"""
        return [replace(p) for p in self._patterns]

    def get_patterns_by_category(self, category: PatternCategory) -> list[Pattern]:
        return [replace(p) for p in self._patterns if p.category == category]

    def get_patterns_by_agent(self, agent_type: str) -> list[Pattern]:
        """Rules evaluated for agent_type (its own plus wildcard)"""
        return [replace(p) for p in self._patterns if p.applies_to(agent_type)]

    def pattern_count(self) -> int:
        return len(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)


# === Shared default library ===

_default_library: PatternLibrary | None = None
_default_library_lock = threading.Lock()


def get_default_library() -> PatternLibrary:
    """Process-wide library with the built-in rules, built on first use

    Shared by every caller that does not supply its own library; never
    assume exclusive ownership of it.
    """
    global _default_library
    if _default_library is None:
        with _default_library_lock:
            if _default_library is None:
                _default_library = PatternLibrary()
                logger.debug(
                    f"[Patterns] Default library v{_default_library.version} "
                    f"with {_default_library.pattern_count()} patterns"
                )
    return _default_library


def match_patterns(content: str, agent_type: str) -> list[PatternMatch]:
    return get_default_library().match(content, agent_type)


def match_first_pattern(content: str, agent_type: str) -> PatternMatch | None:
    return get_default_library().match_first(content, agent_type)


def has_error_pattern(content: str, agent_type: str) -> bool:
    return get_default_library().has_error(content, agent_type)


def has_idle_pattern(content: str, agent_type: str) -> bool:
    return get_default_library().has_idle_prompt(content, agent_type)


def has_thinking_pattern(content: str, agent_type: str) -> bool:
    return get_default_library().has_thinking_indicator(content, agent_type)
