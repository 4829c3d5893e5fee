"""
One-time initialization of the rule engine.

Building the engine means finding depcheck.yml, reading it, parsing it and
compiling every pattern. That happens once per process, no matter how many
worker threads ask for the engine at the same time:

    gate = engine_gate()
    engine = gate.get()   # first caller builds, the others wait
    engine = gate.get()   # later callers get the same engine

If the build fails, the exception is kept and raised again for every
caller. The build is never retried.

The gate is an ordinary object created by the host and passed to whatever
needs the engine; there is no module-level engine.
"""

import logging
import os
import threading
from typing import Callable, Generic, TypeVar

from depcheck.config.loader import load_policy
from depcheck.config.locator import locate_config
from depcheck.policy.compiler import compile_policy
from depcheck.policy.engine import RuleEngine
from depcheck.schema import CONFIG_ENV_VAR, DEFAULT_CONFIG_NAME

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InitializationGate(Generic[T]):
    """
    Runs a builder exactly once and caches its result or its exception.

    Attributes:
        builder: Zero-argument callable producing the shared value
    """

    def __init__(self, builder: Callable[[], T]) -> None:
        self.builder = builder
        self._lock = threading.Lock()
        self._done = False
        self._value: T | None = None
        self._error: BaseException | None = None

    @property
    def initialized(self) -> bool:
        """True once the builder has run, whether it succeeded or failed."""
        return self._done

    def get(self) -> T:
        """
        Return the built value, building it on first use.

        Raises:
            Exception: Whatever the builder raised, on this and every later call
        """
        if not self._done:
            with self._lock:
                if not self._done:
                    self._run()

        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def _run(self) -> None:
        # BaseException such as KeyboardInterrupt propagates and leaves the gate unbuilt
        try:
            self._value = self.builder()
        except Exception as e:
            logger.debug("Initialization failed: %s", e)
            self._error = e
        self._done = True


def build_engine(
    name: str = DEFAULT_CONFIG_NAME,
    override: str | None = None,
) -> RuleEngine:
    """
    Locate, load and compile the policy into a RuleEngine.

    Args:
        name: Policy file name searched for from the working directory up
        override: Explicit policy path; defaults to $DEPCHECK_CONFIG

    Raises:
        ConfigNotFoundError, ConfigReadError, ConfigParseError, RuleCompileError
    """
    if override is None:
        override = os.environ.get(CONFIG_ENV_VAR)

    path = locate_config(name, override=override)
    document = load_policy(path)
    engine = RuleEngine(compile_policy(document))
    logger.info("Rule engine ready: %d rule(s) from %s", engine.rule_count, path)
    return engine


def engine_gate(
    name: str = DEFAULT_CONFIG_NAME,
    override: str | None = None,
) -> InitializationGate[RuleEngine]:
    """Create a gate that builds the engine with build_engine() on first use."""
    return InitializationGate(lambda: build_engine(name, override))
