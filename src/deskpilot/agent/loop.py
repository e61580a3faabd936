"""AgentLoop: the tool-calling state machine behind one user request.

    Idle -> Extracting -> Thinking -> (ToolDispatch -> Extracting -> Thinking)*
         -> Done | Cancelled | Fatal

Only one run is active at a time. cancel() bumps the session counter; the
run notices at its next checkpoint (before the provider call, after
streaming, around each tool dispatch) and returns "".
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from deskpilot.actions.sequencer import ActionSequencer
from deskpilot.actions.spec import ActionParseError, parse_actions
from deskpilot.actions.waits import WaitTiming
from deskpilot.agent.events import EventSink, NullEventSink
from deskpilot.agent.history import RunHistoryStore, record_from_run
from deskpilot.agent.prompts import (
    build_image_message,
    build_state_update,
    build_user_message,
    format_recent_activity,
    transcript,
)
from deskpilot.agent.run import LoopState, Run, SessionCounter
from deskpilot.approval import (
    COMPUTER_USE,
    ApprovalGate,
    ApprovalPolicy,
    ApprovalRequest,
    ApprovalRequirement,
    AuthGate,
    AuthRequest,
)
from deskpilot.automation import ScriptRunner, TimedBackend
from deskpilot.config import Config, get_config
from deskpilot.context import ContextManager, get_context_limit
from deskpilot.core.llm.credentials import require_credentials
from deskpilot.core.llm.litellm_provider import create_provider
from deskpilot.core.llm.provider import Message, Role, ToolCall
from deskpilot.errors import AgentBusyError, ApprovalBusyError
from deskpilot.extraction import StateExtractor
from deskpilot.geometry import CoordinateConvention
from deskpilot.logging import get_logger
from deskpilot.memory import FlushPolicy, MemoryFlusher
from deskpilot.prompts import SYSTEM_PROMPT
from deskpilot.settings import read_run_settings
from deskpilot.tools import ToolContext, ToolExecutor, ToolKind, ToolRegistry, ToolResult, register_builtin_tools
from deskpilot.tools.web import DuckDuckGoSearch, SerperImageSearch

if TYPE_CHECKING:
    from deskpilot.actions.sequencer import ImageSearch
    from deskpilot.actions.waits import Clock
    from deskpilot.automation.backend import HostAutomationBackend
    from deskpilot.core.llm.provider import LLMProvider, ToolSchema
    from deskpilot.core.tokens import TokenEstimator
    from deskpilot.extraction.state import AppState
    from deskpilot.geometry import ScreenGeometry
    from deskpilot.integrations.types import IntegrationRouter
    from deskpilot.memory import MemoryStore
    from deskpilot.settings import SettingsStore
    from deskpilot.tools.context import WebSearch

log = get_logger("agent")

MAX_ITERATIONS_MESSAGE = (
    "I reached the maximum number of steps for this request. "
    "The task may be partially complete; please check the screen and ask again to continue."
)
NO_RESPONSE_MESSAGE = "Task completed."
SYSTEM_PROMPT_KEY = "agent_system_prompt"

ProviderFactory = Callable[[str], "LLMProvider"]


class AgentLoop:
    """Drives one request at a time through extract, think and act rounds."""

    def __init__(
        self,
        backend: HostAutomationBackend,
        *,
        extractor: StateExtractor | None = None,
        registry: ToolRegistry | None = None,
        config: Config | None = None,
        provider_factory: ProviderFactory | None = None,
        settings_store: SettingsStore | None = None,
        policy: ApprovalPolicy | None = None,
        events: EventSink | None = None,
        memory: MemoryStore | None = None,
        history: RunHistoryStore | None = None,
        router: IntegrationRouter | None = None,
        script_runner: ScriptRunner | None = None,
        web_search: WebSearch | None = None,
        image_search: ImageSearch | None = None,
        clock: Clock | None = None,
        estimator: TokenEstimator | None = None,
        geometry: ScreenGeometry | None = None,
    ) -> None:
        self.config = config or get_config()
        actions = self.config.actions
        if not isinstance(backend, TimedBackend):
            backend = TimedBackend(backend, timeout=actions.backend_timeout, script_timeout=actions.script_timeout)
        self.backend = backend
        self.extractor = extractor or StateExtractor(backend)
        self.registry = registry or register_builtin_tools(ToolRegistry())
        self.policy = policy or ApprovalPolicy.from_config(self.config.approval)
        self.events: EventSink = events or NullEventSink()
        self.approval_gate = ApprovalGate()
        self.auth_gate = AuthGate()
        self.memory = memory
        self.history = history
        self.router = router
        self.script_runner = script_runner or ScriptRunner(timeout=actions.script_timeout)
        self.web_search = web_search or DuckDuckGoSearch()
        self.image_search = image_search or SerperImageSearch()

        self._provider_factory = provider_factory or self._default_provider
        self._settings_store = settings_store
        self._clock = clock
        self._estimator = estimator
        self._geometry = geometry

        self._counter = SessionCounter()
        self._active: Run | None = None
        self._state = LoopState.IDLE
        self._background: set[asyncio.Task[Any]] = set()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def active_run(self) -> Run | None:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._active is not None

    async def run(
        self,
        query: str,
        target_app: str | None = None,
        selected_text: str | None = None,
    ) -> str:
        """Handle one user request and return the final text ("" if cancelled).

        Raises:
            AgentBusyError: Another run is active.
            ConfigurationError: The selected model has no credentials.
        """
        if self._active is not None:
            raise AgentBusyError(self._active.query)

        settings = read_run_settings(self._settings_store)
        model = settings.model or self.config.llm.model
        run = Run(
            query=query,
            token=self._counter.token(),
            settings=settings,
            target_app=target_app,
            selected_text=selected_text,
            convention=CoordinateConvention.for_model(model),
        )
        self._active = run
        try:
            require_credentials(model)
            return await self._execute(run, model)
        except Exception:
            self._set_state(LoopState.FATAL)
            raise
        finally:
            self._active = None

    def cancel(self) -> None:
        """Cancel the active run and release any pending approval or auth wait."""
        self._counter.bump()
        self.approval_gate.cancel()
        self.auth_gate.cancel()
        if self._active is not None:
            log.info("Cancel requested for %r", self._active.query)

    def resolve_approval(self, approved: bool) -> bool:
        return self.approval_gate.resolve(approved)

    def complete_auth(self) -> bool:
        return self.auth_gate.complete()

    async def wait_for_background(self) -> None:
        """Wait for scheduled memory flushes to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Run body
    # -------------------------------------------------------------------------

    def _default_provider(self, model: str) -> LLMProvider:
        llm = self.config.llm
        return create_provider(model, api_base=llm.api_base, temperature=llm.temperature)

    def _set_state(self, state: LoopState) -> None:
        if state is not self._state:
            log.debug("Loop state %s -> %s", self._state.value, state.value)
            self._state = state

    def _cancelled(self) -> str:
        self._set_state(LoopState.CANCELLED)
        log.info("Run cancelled")
        return ""

    async def _execute(self, run: Run, model: str) -> str:
        provider = self._provider_factory(model)
        context = ContextManager(get_context_limit(model), estimator=self._estimator)
        flush_policy = FlushPolicy(self.config.memory.flush_threshold, self.config.memory.flush_hysteresis)
        executor = ToolExecutor(self._tool_context(run))

        if self.router is not None:
            self.registry.sync_integrations(self.router.list_tools())
        tools = self.registry.schemas(run.settings)

        self._set_state(LoopState.EXTRACTING)
        self.events.status("Extracting state...")
        state = await self.extractor.extract(run.selected_text, app_name=run.target_app)
        if run.cancelled:
            return self._cancelled()

        system_prompt = SYSTEM_PROMPT
        if self._settings_store is not None:
            system_prompt = self._settings_store.get(SYSTEM_PROMPT_KEY) or SYSTEM_PROMPT
        context.reset(Message(Role.SYSTEM, system_prompt))
        self._track(context, self._first_message(run, state), flush_policy, provider)

        for iteration in range(1, self.config.agent.max_iterations + 1):
            run.iterations = iteration
            if run.cancelled:
                return self._cancelled()

            self._set_state(LoopState.THINKING)
            self.events.status("Thinking...")
            log.debug("Iteration %d/%d", iteration, self.config.agent.max_iterations)
            text, calls = await self._think(run, provider, context, tools)
            if run.cancelled:
                return self._cancelled()

            if not calls:
                return self._finish(run, text.strip() or NO_RESPONSE_MESSAGE, context, provider)

            self._track(context, Message(Role.ASSISTANT, text, tool_calls=tuple(calls)), flush_policy, provider)

            self._set_state(LoopState.TOOL_DISPATCH)
            attachments: list[Message] = []
            final_text: str | None = None
            for call in calls:
                if run.cancelled:
                    return self._cancelled()
                result = await self._dispatch(run, call, executor)
                if run.cancelled:
                    return self._cancelled()
                self._track(context, ToolExecutor.to_message(call, result), flush_policy, provider)
                if result.images:
                    attachments.append(build_image_message(call.name, result.images))
                if result.terminal:
                    final_text = result.output
            # Attachments go after the tool messages of the round
            for message in attachments:
                self._track(context, message, flush_policy, provider)

            if final_text is not None:
                return self._finish(run, final_text or NO_RESPONSE_MESSAGE, context, provider)

            self._set_state(LoopState.EXTRACTING)
            self.events.status("Checking result...")
            state = await self.extractor.extract()
            if run.cancelled:
                return self._cancelled()
            self._track(context, build_state_update(state), flush_policy, provider)

        log.warning("Run hit max iterations (%d)", self.config.agent.max_iterations)
        return self._finish(run, MAX_ITERATIONS_MESSAGE, context, provider)

    def _first_message(self, run: Run, state: AppState) -> Message:
        memory_context = ""
        if self.memory is not None and self.config.memory.enabled:
            memory_context = self.memory.context_for(run.query, self.config.agent.memory_results_in_prompt)
        recent = ""
        if self.history is not None and self.config.history.enabled:
            recent = format_recent_activity(self.history.recent(self.config.agent.recent_runs_in_prompt))
        return build_user_message(run.query, state, memory_context=memory_context, recent_activity=recent)

    async def _think(
        self,
        run: Run,
        provider: LLMProvider,
        context: ContextManager,
        tools: list[ToolSchema],
    ) -> tuple[str, list[ToolCall]]:
        text_parts: list[str] = []
        calls: list[ToolCall] = []
        async for chunk in provider.stream(
            context.messages,
            tools=tools or None,
            max_tokens=self.config.llm.max_tokens,
        ):
            if run.cancelled:
                break
            if chunk.text:
                text_parts.append(chunk.text)
                self.events.stream_chunk(chunk.text)
            if chunk.tool_calls:
                calls.extend(chunk.tool_calls)
        return "".join(text_parts), calls

    def _finish(self, run: Run, text: str, context: ContextManager, provider: LLMProvider) -> str:
        self._set_state(LoopState.DONE)
        if self.history is not None and self.config.history.enabled:
            try:
                self.history.save(record_from_run(run, text))
            except RuntimeError as e:
                log.warning("%s", e)
        if self.memory is not None and self.config.memory.enabled:
            self._schedule_flush(provider, context)
        self.events.response(text)
        log.info("Run finished after %d iteration(s), tools: %s", run.iterations, run.tools_used)
        return text

    # -------------------------------------------------------------------------
    # Context and memory
    # -------------------------------------------------------------------------

    def _track(
        self,
        context: ContextManager,
        message: Message,
        policy: FlushPolicy,
        provider: LLMProvider,
    ) -> None:
        context.track(message)
        if self.memory is None or not self.config.memory.enabled:
            return
        if policy.should_flush(context.current_tokens, context.max_tokens):
            log.info("Context at %.0f%%, flushing memories", context.usage_percent())
            policy.record_flush(context.current_tokens)
            self._schedule_flush(provider, context)

    def _schedule_flush(self, provider: LLMProvider, context: ContextManager) -> None:
        assert self.memory is not None
        flusher = MemoryFlusher(provider, self.memory)
        task = asyncio.create_task(flusher.flush(transcript(context.messages)))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # -------------------------------------------------------------------------
    # Tool dispatch
    # -------------------------------------------------------------------------

    def _tool_context(self, run: Run) -> ToolContext:
        actions = self.config.actions
        sequencer = ActionSequencer(
            self.backend,
            convention=run.convention,
            geometry=self._geometry,
            clock=self._clock,
            timing=WaitTiming(
                poll_interval_ms=actions.poll_interval_ms,
                app_activate_timeout_ms=actions.app_activate_timeout_ms,
                ui_settle_timeout_ms=actions.ui_settle_timeout_ms,
                stable_polls=actions.stable_polls,
            ),
            paste_threshold=actions.paste_threshold,
            max_wait_seconds=actions.max_wait_seconds,
            image_search=self.image_search,
            disabled_categories=run.settings.disabled_categories,
        )
        return ToolContext(
            backend=self.backend,
            extractor=self.extractor,
            sequencer=sequencer,
            registry=self.registry,
            script_runner=self.script_runner,
            memory=self.memory if self.config.memory.enabled else None,
            router=self.router,
            web_search=self.web_search,
            image_search=self.image_search,
            settings=run.settings,
            script_timeout=actions.script_timeout,
        )

    async def _dispatch(self, run: Run, call: ToolCall, executor: ToolExecutor) -> ToolResult:
        display = self.registry.display_name(call.name)
        run.record(call.name, call.arguments)
        self.events.status(f"{display}...")

        if not await self._approve(run, call):
            if run.cancelled:
                return ToolResult.fail("Cancelled")
            log.info("User denied %s", call.name)
            result = ToolResult.fail(f"User denied {call.name}")
            self.events.tool_finished(call.name, False, result.to_text())
            return result

        self.events.tool_started(call.name, display, call.arguments)
        result = await executor.execute(call)
        if result.auth is not None and not run.cancelled:
            result = await self._authenticate_and_retry(run, call, result, executor)
        self.events.tool_finished(call.name, result.success, result.to_text())
        return result

    async def _approve(self, run: Run, call: ToolCall) -> bool:
        entry = self.registry.get(call.name)
        if entry is None:
            # Unknown tools fail in the executor
            return True
        is_integration = entry.kind is ToolKind.INTEGRATION
        requirement = self.policy.requirement(call.name, is_integration=is_integration, settings=run.settings)
        if requirement is ApprovalRequirement.NONE:
            return True
        if requirement is ApprovalRequirement.CATEGORY and run.computer_use_approved:
            return True

        request = ApprovalRequest(
            tool_name=call.name,
            description=entry.schema.description,
            args=dict(call.arguments),
            is_external_integration=is_integration,
            display_name=entry.display_name,
            category=COMPUTER_USE if requirement is ApprovalRequirement.CATEGORY else call.name,
            details=_approval_details(call),
        )
        self.events.approval_required(request)
        try:
            approved = await self.approval_gate.request(request)
        except ApprovalBusyError as e:
            log.warning("%s", e)
            return False
        if approved and requirement is ApprovalRequirement.CATEGORY:
            run.computer_use_approved = True
        return approved

    async def _authenticate_and_retry(
        self,
        run: Run,
        call: ToolCall,
        result: ToolResult,
        executor: ToolExecutor,
    ) -> ToolResult:
        auth = result.auth
        assert auth is not None
        request = AuthRequest(
            tool_name=call.name,
            toolkit=auth.toolkit,
            redirect_url=auth.redirect_url,
            message=f"Connect {auth.toolkit} to continue",
        )
        self.events.auth_required(request)
        self.events.status(f"Waiting for {auth.toolkit} authentication...")
        try:
            completed = await self.auth_gate.wait(request)
        except ApprovalBusyError as e:
            return ToolResult.fail(str(e))
        if run.cancelled or not completed:
            return ToolResult.fail(f"Authentication for {auth.toolkit} was not completed")

        log.info("Retrying %s after %s authentication", call.name, auth.toolkit)
        retried = await executor.execute(call)
        if retried.success:
            retried.output = f"{retried.output}\n\n(Authenticated {auth.toolkit} and retried the call.)"
        return retried


def _approval_details(call: ToolCall) -> dict[str, Any]:
    args = call.arguments
    if isinstance(args.get("actions"), list):
        try:
            return {"actions": [a.describe() for a in parse_actions(args["actions"])]}
        except ActionParseError:
            return {}
    for key in ("command", "code", "script", "text"):
        if isinstance(args.get(key), str):
            return {key: args[key]}
    return {}
