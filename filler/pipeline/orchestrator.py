"""
Template-fill session orchestration.

A session covers one interactive cycle: pick a template, describe the
content, generate, save. It owns the processing state machine

    IDLE -> RUNNING -> SUCCEEDED | FAILED -> IDLE

and allows at most one generation in flight.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from loguru import logger

from filler.config.schema import Config, ProcessingConfig
from filler.errors import FillerError
from filler.generation.optimizer import PromptOptimizer
from filler.generation.service import GenerationService
from filler.notifications import LoggingNotifier, Notifier
from filler.providers.registry import ProviderRegistry
from filler.storage.base import StorageBackend
from filler.storage.local import LocalStorage
from filler.templates.frontmatter import get_tags, parse_frontmatter, with_frontmatter
from filler.templates.repository import Template, TemplateRepository
from filler.templates.writer import OutputWriter


class ProcessingState(str, Enum):
    """Processing state of a session."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SessionResult:
    """Outcome of one submit() call."""
    state: ProcessingState
    output_path: str | None = None
    error: str | None = None
    accepted: bool = True  # False when the submit was a no-op
    discarded: bool = False  # True when the session closed mid-generation


GENERIC_FAILURE = "Failed to generate the filled template. Check the logs for details."
FAILURE_NOTICE = "Failed to generate the filled template"
SAVE_FAILURE_NOTICE = "Failed to save filled template"


class TemplateFillSession:
    """
    Sequences template load, prompt optimization, generation and output.
    
    Views drive the session with select_template(), set_instruction() and
    submit(), and observe it through the on_* callbacks.
    """
    
    def __init__(
        self,
        repository: TemplateRepository,
        service: GenerationService,
        optimizer: PromptOptimizer,
        writer: OutputWriter,
        processing: ProcessingConfig | None = None,
        notifier: Notifier | None = None,
        progress_interval: float = 0.5,
    ):
        self.repository = repository
        self.service = service
        self.optimizer = optimizer
        self.writer = writer
        self.processing = processing or ProcessingConfig()
        self.notifier = notifier or LoggingNotifier()
        self.progress_interval = progress_interval
        
        self.selected_template: Template | None = None
        self.instruction = ""
        
        self._state = ProcessingState.IDLE
        self._closed = False
        self._submit_enabled = False
        self._in_flight = False
        self._run_token = 0  # Bumped by open() and close(); stale runs are discarded
        self._ticker: asyncio.Task | None = None
        self._started_at: float | None = None
        
        # Observers
        self._state_callbacks: list[Callable[[ProcessingState], Any]] = []
        self._enabled_callbacks: list[Callable[[bool], Any]] = []
        self._selection_callbacks: list[Callable[[Template | None], Any]] = []
        self._progress_callbacks: list[Callable[[float], Any]] = []
    
    # ------------------------------------------------------------------
    # State and observers
    # ------------------------------------------------------------------
    
    @property
    def state(self) -> ProcessingState:
        return self._state
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    @property
    def can_submit(self) -> bool:
        """Guard: a template is selected and the instruction is non-empty."""
        return self.selected_template is not None and bool(self.instruction.strip())
    
    @property
    def submit_enabled(self) -> bool:
        """Whether the submit control should currently be enabled."""
        return self._submit_enabled
    
    def on_state_change(self, callback: Callable[[ProcessingState], Any]) -> None:
        self._state_callbacks.append(callback)
    
    def on_submit_enabled(self, callback: Callable[[bool], Any]) -> None:
        self._enabled_callbacks.append(callback)
    
    def on_template_selected(self, callback: Callable[[Template | None], Any]) -> None:
        self._selection_callbacks.append(callback)
    
    def on_progress(self, callback: Callable[[float], Any]) -> None:
        """Receive elapsed seconds periodically while a generation runs."""
        self._progress_callbacks.append(callback)
    
    def _emit(self, callbacks: list[Callable], value: Any) -> None:
        for callback in list(callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception(f"Session observer {callback!r} failed")
    
    def _set_state(self, state: ProcessingState) -> None:
        if state == self._state:
            return
        logger.debug(f"Session state: {self._state.value} -> {state.value}")
        self._state = state
        self._emit(self._state_callbacks, state)
        self._refresh_submit_enabled()
    
    def _refresh_submit_enabled(self) -> None:
        enabled = (
            self.can_submit
            and not self._in_flight
            and not self._closed
        )
        if enabled != self._submit_enabled:
            self._submit_enabled = enabled
            self._emit(self._enabled_callbacks, enabled)
    
    # ------------------------------------------------------------------
    # View events
    # ------------------------------------------------------------------
    
    async def open(self) -> list[Template]:
        """
        Start (or restart) the session and load the template list.
        
        A generation still running from before a close() stays in flight
        and keeps the session RUNNING until it arrives, but its result is
        discarded.
        """
        self._closed = False
        self._run_token += 1
        if not self._in_flight:
            self._set_state(ProcessingState.IDLE)
        self._refresh_submit_enabled()
        return await self.load_templates()
    
    async def load_templates(self) -> list[Template]:
        """Fetch templates for the view. Failures are reported, not raised."""
        try:
            return await self.repository.get_templates()
        except FillerError as e:
            logger.error(f"Failed to load templates: {e}")
            self.notifier.error(f"Failed to load templates: {e}")
            return []
    
    def select_template(self, template: Template | None) -> None:
        self.selected_template = template
        self._emit(self._selection_callbacks, template)
        self._refresh_submit_enabled()
    
    def set_instruction(self, text: str) -> None:
        self.instruction = text or ""
        self._refresh_submit_enabled()
    
    def reset(self) -> None:
        """Return a finished session to IDLE."""
        if self._state in (ProcessingState.SUCCEEDED, ProcessingState.FAILED):
            self._set_state(ProcessingState.IDLE)
    
    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    
    async def submit(self) -> SessionResult:
        """
        Run the pipeline for the current selection and instruction.
        
        A submit while a generation is running, or before the guard is
        satisfied, is a no-op.
        """
        if self._closed:
            logger.debug("Submit on closed session ignored")
            return SessionResult(state=self._state, accepted=False)
        
        if self._in_flight:
            logger.debug("Generation already in progress; submit ignored")
            return SessionResult(state=self._state, accepted=False)
        
        if self.selected_template is None:
            self.notifier.warning("Please select a template first")
            return SessionResult(state=self._state, accepted=False)
        
        if not self.instruction.strip():
            self.notifier.warning("Please enter your requirements")
            return SessionResult(state=self._state, accepted=False)
        
        template = self.selected_template
        instruction = self.instruction
        token = self._run_token
        
        self._in_flight = True
        self._set_state(ProcessingState.RUNNING)
        self._start_ticker()
        
        output_path: str | None = None
        error: str | None = None
        failure_notice = FAILURE_NOTICE
        stale = False
        try:
            content = await self._process_template(template, instruction)
            if token != self._run_token:
                stale = True
            else:
                failure_notice = SAVE_FAILURE_NOTICE
                output_path = await self.writer.create_filled_file(template, content)
        except FillerError as e:
            error = str(e)
            logger.error(f"Template processing failed: {error}")
        except asyncio.CancelledError:
            logger.info("Template processing cancelled")
            self._finish_run()
            self._return_to_idle()
            raise
        except Exception:
            error = GENERIC_FAILURE
            logger.exception("Template processing failed")
        finally:
            self._finish_run()
        
        if stale or token != self._run_token:
            return self._discard()
        
        if error is None:
            logger.info(f"Session complete: {template.path} -> {output_path}")
            self._set_state(ProcessingState.SUCCEEDED)
            self.notifier.success(f"Template filled and saved to {output_path}")
            result = SessionResult(state=ProcessingState.SUCCEEDED, output_path=output_path)
        else:
            self._set_state(ProcessingState.FAILED)
            self.notifier.error(f"{failure_notice}: {error}")
            result = SessionResult(state=ProcessingState.FAILED, error=error)
        
        self.reset()
        return result
    
    def _finish_run(self) -> None:
        self._in_flight = False
        self._stop_ticker()
    
    def _return_to_idle(self) -> None:
        # A closed session publishes nothing
        if self._closed:
            self._state = ProcessingState.IDLE
        else:
            self._set_state(ProcessingState.IDLE)
        self._refresh_submit_enabled()
    
    async def _process_template(self, template: Template, instruction: str) -> str:
        """Load, optimize, combine and generate. Returns the document text."""
        template_content = await self.repository.load_template(template.path)
        
        optimized = await self.optimizer.optimize(instruction, template_content)
        final_instruction = self.optimizer.combine(template_content, optimized)
        
        content = await self.service.generate_filled_template(
            template_content, final_instruction
        )
        
        if self.processing.include_frontmatter:
            content = with_frontmatter(content, self._output_metadata(template, template_content))
        
        return content
    
    def _output_metadata(self, template: Template, template_content: str) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "template": template.path,
            "created": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        if self.processing.inherit_template_tags:
            frontmatter, _ = parse_frontmatter(template_content)
            tags = get_tags(frontmatter)
            if tags:
                metadata["tags"] = tags
        return metadata
    
    def _discard(self) -> SessionResult:
        logger.info("Session closed before generation finished; result discarded")
        self._return_to_idle()
        return SessionResult(state=ProcessingState.IDLE, accepted=True, discarded=True)
    
    # ------------------------------------------------------------------
    # Progress ticker
    # ------------------------------------------------------------------
    
    def _start_ticker(self) -> None:
        self._started_at = time.monotonic()
        if self._progress_callbacks and self.progress_interval > 0:
            self._ticker = asyncio.create_task(self._tick())
    
    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
    
    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.progress_interval)
            elapsed = time.monotonic() - (self._started_at or time.monotonic())
            self._emit(self._progress_callbacks, elapsed)
    
    def close(self) -> None:
        """
        Dispose of the session.
        
        Pending timers are cancelled. An in-flight generation keeps running,
        but its result is discarded when it arrives.
        """
        self._stop_ticker()
        self._closed = True
        self._run_token += 1
        if not self._in_flight:
            self._state = ProcessingState.IDLE
        self._refresh_submit_enabled()


def create_session(
    config: Config,
    storage: StorageBackend | None = None,
    notifier: Notifier | None = None,
    registry: ProviderRegistry | None = None,
) -> TemplateFillSession:
    """
    Wire up a session from configuration.
    
    Args:
        config: Root configuration.
        storage: Storage facility. Defaults to LocalStorage at the workspace.
        notifier: Where user-facing messages go.
        registry: Provider registry. Defaults to the global one.
    """
    storage = storage or LocalStorage(config.workspace_path)
    notifier = notifier or LoggingNotifier()
    
    service = GenerationService(config, registry=registry, notifier=notifier)
    return TemplateFillSession(
        repository=TemplateRepository.from_config(storage, config),
        service=service,
        optimizer=PromptOptimizer(service, enabled=config.processing.use_prompt_optimization),
        writer=OutputWriter.from_config(storage, config),
        processing=config.processing,
        notifier=notifier,
    )
