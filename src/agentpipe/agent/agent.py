"""Agent Interface.

This module implements the `Agent` class that owns a conversation history and assembles, on every step, the chain
of stages wrapped around the backend completion function.

Stages, outermost first:

1. checks, validating the produced message
2. filters, transforming the history sent onward
3. the tool registry, answering pending tool calls
4. the agent set, relaying turns to an active sub-agent
5. custom middleware, the first added closest to the backend
6. the backend completion function
"""

import logging
from typing import Any, Iterable, Optional, Union

from ..delegation.agent_set import START_TOOL_NAME, STOP_TOOL_NAME, AgentSet
from ..pipeline.checks import CheckFunc, check_stage, stop_on_reply
from ..pipeline.filters import FilterFunc, filter_stage, last_messages
from ..pipeline.middleware import MiddlewareLike, compose
from ..telemetry.tracer import STEP_SPAN_NAME, get_tracer, step_attributes
from ..tools.registry import ToolRegistry
from ..types.cancellation import Context
from ..types.content import ContentProducer, Message, Role
from ..types.tools import CompletionFunc
from .config import AgentConfig

logger = logging.getLogger(__name__)


class Agent:
    """Conversation owner and pipeline assembler.

    Example:
        ```python
        agent = Agent(
            completion,
            filters=[last_messages(20)],
            tools=tools,
            checks=[stop_on_reply],
        )
        agent.add(Role.SYSTEM, "You are a helpful assistant.").add(Role.USER, "Are you alive?")

        reply = agent.step(Context.background())
        ```
    """

    def __init__(
        self,
        completion: CompletionFunc,
        *,
        name: Optional[str] = None,
        messages: Optional[Iterable[Message]] = None,
        filters: Optional[Iterable[FilterFunc]] = None,
        checks: Optional[Iterable[CheckFunc]] = None,
        middleware: Optional[Iterable[MiddlewareLike]] = None,
        tools: Optional[ToolRegistry] = None,
        agent_set: Optional[AgentSet] = None,
    ) -> None:
        """Initialize the Agent.

        Args:
            completion: Backend completion function at the core of the pipeline.
            name: Optional name used in logs and spans.
            messages: Initial conversation history.
            filters: Filters applied to the history before it reaches the backend, in order.
            checks: Checks applied to every produced message, in order.
            middleware: Custom middleware wrapped directly around `completion`, innermost first.
            tools: Tool registry dispatching tool calls.
            agent_set: Agent set delegating turns to sub-agents.
        """
        self._completion = completion
        self.name = name
        self._messages: list[Message] = list(messages) if messages else []
        self._filters: list[FilterFunc] = list(filters) if filters else []
        self._checks: list[CheckFunc] = list(checks) if checks else []
        self._middleware: list[MiddlewareLike] = list(middleware) if middleware else []
        self.tools = tools
        self.agent_set = agent_set
        self._tracer = get_tracer()

    @classmethod
    def from_config(cls, completion: CompletionFunc, config: Union[AgentConfig, str, dict], **kwargs: Any) -> "Agent":
        """Create an agent from configuration.

        The configured system prompt seeds the history, the message window installs a `last_messages` filter in front
        of any given filters, and `stop_on_reply` installs the matching check after any given checks.

        Args:
            completion: Backend completion function.
            config: An `AgentConfig`, a path to a JSON config file, or a config dictionary.
            **kwargs: Further keyword arguments for the constructor.

        Returns:
            The configured agent.
        """
        if not isinstance(config, AgentConfig):
            config = AgentConfig(config)

        filters = list(kwargs.pop("filters", None) or [])
        if config.message_window is not None:
            filters.insert(0, last_messages(config.message_window))

        checks = list(kwargs.pop("checks", None) or [])
        if config.stop_on_reply:
            checks.append(stop_on_reply)

        kwargs.setdefault("name", config.name)
        agent = cls(completion, filters=filters, checks=checks, **kwargs)

        if config.system_prompt:
            agent.add(Role.SYSTEM, config.system_prompt)

        return agent

    def add(self, role: Role, content: str) -> "Agent":
        """Append a message with literal content."""
        self._messages.append(Message(role, content))
        return self

    def add_dynamic(self, role: Role, content_fn: ContentProducer) -> "Agent":
        """Append a message whose content is produced each time it is read."""
        self._messages.append(Message.dynamic(role, content_fn))
        return self

    def add_message(self, message: Message) -> "Agent":
        """Append a message."""
        self._messages.append(message)
        return self

    def add_filter(self, message_filter: FilterFunc) -> "Agent":
        """Append a filter, run after the already configured ones."""
        self._filters.append(message_filter)
        return self

    def add_check(self, check: CheckFunc) -> "Agent":
        """Append a check, run after the already configured ones."""
        self._checks.append(check)
        return self

    def add_middleware(self, middleware: MiddlewareLike) -> "Agent":
        """Append custom middleware, wrapping the already configured ones."""
        self._middleware.append(middleware)
        return self

    @property
    def messages(self) -> list[Message]:
        """A copy of the conversation history."""
        return list(self._messages)

    @property
    def filters(self) -> list[FilterFunc]:
        """A copy of the configured filters."""
        return list(self._filters)

    @property
    def checks(self) -> list[CheckFunc]:
        """A copy of the configured checks."""
        return list(self._checks)

    def fork(self) -> "Agent":
        """Create an agent with the same capabilities and history.

        Later changes to either agent are not visible to the other. The forked agent set starts idle.

        Returns:
            The forked agent.
        """
        tools = self.tools.copy() if self.tools is not None else None
        agent_set = self.agent_set.copy() if self.agent_set is not None else None

        if tools is not None and agent_set is not None and self.agent_set is not None:
            _rebind_agent_set_tools(tools, self.agent_set, agent_set)

        return Agent(
            self._completion,
            name=self.name,
            messages=[message.copy() for message in self._messages],
            filters=self._filters,
            checks=self._checks,
            middleware=self._middleware,
            tools=tools,
            agent_set=agent_set,
        )

    def step(self, ctx: Optional[Context] = None) -> Optional[Message]:
        """Advance the conversation by one turn.

        Args:
            ctx: Cancellation and deadline context. Defaults to a background context.

        Returns:
            The message appended to the history, or None if this turn produced no message.

        Raises:
            ContextCancelledError: If the context is done before the step starts.
            FilterError: If a filter fails.
            CheckError: If a check rejects the produced message.
            DelegationError: If the active sub-agent fails.
            Exception: Tool handler and backend exceptions, unchanged.
        """
        ctx = ctx if ctx is not None else Context.background()
        ctx.raise_if_done()

        completion = self._build_chain()
        attributes = step_attributes(self.name, len(self._messages))

        with self._tracer.start_as_current_span(STEP_SPAN_NAME, attributes=attributes) as span:
            logger.debug("agent=<%s>, message_count=<%d> | stepping agent", self.name, len(self._messages))
            message = completion(ctx, list(self._messages), [])

            # A step may legitimately produce nothing, e.g. while a sub-agent is still in its tool loop.
            if message is None:
                logger.debug("agent=<%s> | step produced no message", self.name)
                return None

            span.set_attribute("agentpipe.message.role", message.role.value)

        self._messages.append(message)
        if self.agent_set is not None:
            self.agent_set.accept(message)
        return message

    def _build_chain(self) -> CompletionFunc:
        completion = compose(self._completion, self._middleware)

        if self.agent_set is not None:
            completion = self.agent_set.wrap(completion)

        if self.tools is not None:
            completion = self.tools.wrap(completion)

        completion = filter_stage(self._filters)(completion)
        return check_stage(self._checks)(completion)


def _rebind_agent_set_tools(tools: ToolRegistry, original: AgentSet, replacement: AgentSet) -> None:
    """Point copied agent_start/agent_stop tools at the forked agent set."""
    rebinds = {START_TOOL_NAME: (original.start, replacement.start), STOP_TOOL_NAME: (original.stop, replacement.stop)}
    for name, (old_handler, new_handler) in rebinds.items():
        if name in tools and tools.get_handler(name) == old_handler:
            tools.replace_handler(name, new_handler)
