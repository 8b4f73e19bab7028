"""Delegation of a conversation to named sub-agents.

An `AgentSet` holds factories for named sub-agents. Installed in an agent pipeline, together with the tools returned
by `AgentSet.tools()`, it lets the outer agent start a sub-agent, relays the turns between the two conversations,
and hands control back when the sub-agent is stopped. The outer agent only ever sees ordinary user and assistant
turns.

State transitions:

    IDLE --start--> STARTED --welcome accepted--> WAITING --reply--> RUNNING --sub-agent reply accepted--> WAITING ...
    any active state --stop--> IDLE

A message surfaced by the agent set only moves the state forward once the outer agent accepts it, i.e. once every
check passed and it was appended to the history (see `AgentSet.accept`). A rejected welcome or sub-agent reply is
surfaced again on the next step instead of being lost or relayed twice.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from pydantic import BaseModel, Field
from typing_extensions import assert_never

from ..tools.registry import ToolRegistry
from ..types.cancellation import Context
from ..types.content import Message, Role
from ..types.exceptions import ContextCancelledError, DelegationError
from ..types.tools import CompletionFunc, ToolDef

if TYPE_CHECKING:
    from ..agent.agent import Agent

logger = logging.getLogger(__name__)

START_TOOL_NAME = "agent_start"
STOP_TOOL_NAME = "agent_stop"

START_HELP = "Start a conversation with a new AI Agent"
STOP_HELP = "Stop current conversation with an AI Agent and resume talking to the user"

REDIRECT_MESSAGE = "I'm sorry, but I don't respond to functions like that. Just ask me directly."

AgentFactory = Callable[[], tuple["Agent", str]]
"""Creates a sub-agent together with the welcome message it greets the outer conversation with."""


class StartArguments(BaseModel):
    """Arguments of the `agent_start` tool."""

    agent: str = Field(description="name of an agent to start")


START_SCHEMA = StartArguments.model_json_schema()
STOP_SCHEMA = {"type": "object", "properties": {}}


class DelegationState(Enum):
    """State of an agent set."""

    IDLE = "idle"
    """No sub-agent is active; turns pass through unchanged."""

    STARTED = "started"
    """A sub-agent was started and its welcome message has not been accepted yet."""

    WAITING = "waiting"
    """The sub-agent waits for the outer agent's next reply."""

    RUNNING = "running"
    """The sub-agent is working on the outer agent's last reply, or its answer has not been accepted yet."""


class AgentSet:
    """Registry of sub-agents and the state machine delegating turns to the active one.

    Example:
        ```python
        agents = AgentSet()
        agents.add("poet", lambda: (Agent(poet_completion), "Hi, I only speak in rhymes."))

        tools = ToolRegistry()
        tools.add_tools(agents.tools())

        agent = Agent(completion, tools=tools, agent_set=agents)
        ```
    """

    def __init__(self) -> None:
        """Initialize an idle agent set without registered agents."""
        self._state = DelegationState.IDLE
        self._name = ""
        self._welcome_message = ""
        self._sub_agent: Optional["Agent"] = None
        self._pending: Optional[Message] = None
        self._factories: dict[str, AgentFactory] = {}

    def add(self, name: str, factory: AgentFactory) -> None:
        """Register a sub-agent factory under a name, replacing any previous one."""
        self._factories[name] = factory

    @property
    def agent_names(self) -> list[str]:
        """Names of all registered sub-agents."""
        return list(self._factories)

    @property
    def state(self) -> DelegationState:
        """Current delegation state."""
        return self._state

    @property
    def idle(self) -> bool:
        """Whether no sub-agent is active."""
        return self._state is DelegationState.IDLE

    @property
    def active_agent_name(self) -> Optional[str]:
        """Name of the active sub-agent, if any."""
        return self._name or None

    @property
    def sub_agent(self) -> Optional["Agent"]:
        """The active sub-agent, if any."""
        return self._sub_agent

    def copy(self) -> "AgentSet":
        """Create an idle agent set with the same registered factories."""
        agent_set = AgentSet()
        for name, factory in self._factories.items():
            agent_set.add(name, factory)
        return agent_set

    def start(self, ctx: Context, arguments: str) -> str:
        """Start a registered sub-agent.

        Args:
            ctx: Step context.
            arguments: JSON payload of the form `{"agent": "<name>"}`.

        Returns:
            A message for the conversation: a confirmation, or the reason nothing was started.

        Raises:
            pydantic.ValidationError: If the arguments are malformed.
        """
        if self._state is not DelegationState.IDLE:
            return "Agent is already running"

        args = StartArguments.model_validate_json(arguments)

        factory = self._factories.get(args.agent)
        if factory is None:
            logger.warning("agent=<%s> | agent not found", args.agent)
            return f"Agent {args.agent} not found"

        self._sub_agent, self._welcome_message = factory()
        self._name = args.agent
        self._set_state(DelegationState.STARTED)

        return f"{self._name} has entered the chat"

    def stop(self, ctx: Context, arguments: str) -> str:
        """Stop the active sub-agent and return to the outer conversation.

        Args:
            ctx: Step context.
            arguments: Ignored; the tool takes no arguments.

        Returns:
            A farewell message, or a note that no sub-agent is running.
        """
        if self._state is DelegationState.IDLE:
            return "No agent is currently running"

        name = self._name
        self._name = ""
        self._welcome_message = ""
        self._sub_agent = None
        self._pending = None
        self._set_state(DelegationState.IDLE)

        return f"{name} has left the chat"

    def tools(self) -> ToolRegistry:
        """Return a registry exposing the `agent_start` and `agent_stop` tools."""
        registry = ToolRegistry()
        registry.add(START_TOOL_NAME, START_HELP, START_SCHEMA, self.start)
        registry.add(STOP_TOOL_NAME, STOP_HELP, STOP_SCHEMA, self.stop)
        return registry

    def wrap(self, next_step: CompletionFunc) -> CompletionFunc:
        """Install the agent set in front of `next_step`.

        Args:
            next_step: The rest of the chain.

        Returns:
            A completion function that relays turns to the active sub-agent, or calls onward while idle.
        """

        def completion(ctx: Context, messages: list[Message], tool_defs: list[ToolDef]) -> Optional[Message]:
            logger.debug("agent=<%s>, state=<%s> | agent set step", self._name, self._state.value)

            match self._state:
                case DelegationState.IDLE:
                    return next_step(ctx, messages, tool_defs)
                case DelegationState.STARTED:
                    # Steps are the only way to add a message to the conversation, so the welcome message takes
                    # one without reaching the backend.
                    return self._surface(self._welcome_message)
                case DelegationState.WAITING:
                    return self._relay_reply(ctx, messages, tool_defs, next_step)
                case DelegationState.RUNNING:
                    if self._pending is not None:
                        return self._surface(self._pending.content(ctx))
                    return self._step_sub_agent(ctx)
                case _:
                    assert_never(self._state)

        return completion

    def accept(self, message: Message) -> None:
        """Complete the transition started by a surfaced message once it joined the outer history.

        `Agent.step` calls this after the checks passed and the message was appended. Any other message is ignored.

        Args:
            message: The message appended to the outer history.
        """
        if self._pending is None or message is not self._pending:
            return

        self._pending = None
        self._set_state(DelegationState.WAITING)

    def _surface(self, content: str) -> Message:
        self._pending = Message(Role.USER, content)
        return self._pending

    def _relay_reply(
        self, ctx: Context, messages: list[Message], tool_defs: list[ToolDef], next_step: CompletionFunc
    ) -> Optional[Message]:
        """Forward the outer agent's last reply to the sub-agent.

        Tool calls other than `agent_stop` get the redirect message. Inside an `Agent` that has a tool registry, the
        dispatcher runs first and answers every pending call, so the redirect only shows up for agents without one
        (or when the agent set is wrapped around a completion function directly).
        """
        last = messages[-1] if messages else None
        if last is None or last.role is not Role.ASSISTANT:
            return next_step(ctx, messages, tool_defs)

        tool_call = last.first_tool_call()
        if tool_call is None:
            assert self._sub_agent is not None
            self._sub_agent.add(Role.USER, last.content(ctx))
            self._set_state(DelegationState.RUNNING)
            return self._step_sub_agent(ctx)

        if tool_call.name != STOP_TOOL_NAME:
            # Only agent_stop is allowed while a sub-agent listens; outer agents tend to keep calling other tools.
            logger.debug("agent=<%s>, tool_name=<%s> | redirecting tool call", self._name, tool_call.name)
            return Message(Role.USER, REDIRECT_MESSAGE)

        return next_step(ctx, messages, tool_defs)

    def _step_sub_agent(self, ctx: Context) -> Optional[Message]:
        assert self._sub_agent is not None
        try:
            message = self._sub_agent.step(ctx)
            if message is None or message.role is not Role.ASSISTANT or message.has_tool_calls():
                return None
            content = message.content(ctx)
        except ContextCancelledError:
            raise
        except Exception as e:
            raise DelegationError(self._name, e) from e

        return self._surface(content)

    def _set_state(self, state: DelegationState) -> None:
        self._state = state
        logger.debug("agent=<%s>, state=<%s> | agent set state change", self._name, state.value)
