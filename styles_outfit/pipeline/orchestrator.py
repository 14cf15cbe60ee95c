"""Generation Orchestrator - the lifecycle of outfit generation attempts."""

import asyncio
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel

from ..config import StylesConfig
from ..exceptions import DownloadError, GenerationInProgressError, InvalidTransitionError
from ..logging import get_logger
from ..models import (
    BodyData,
    DownloadOptions,
    ErrorCode,
    ErrorState,
    GeneratedResult,
    GenerationRequest,
    GenerationState,
    LoadingStage,
    RawError,
    UploadedImage,
)
from ..prompts import build_request
from ..services import GenerationGateway
from ..utils import (
    BodyDataStore,
    classify,
    error_category,
    export_result,
    make_error_state,
    normalize,
    suggested_action,
    validate_pair,
)


STAGE_ORDER = list(LoadingStage)


class SessionView(BaseModel):
    """Everything a presentation layer needs to render the current view."""

    state: GenerationState
    can_generate: bool
    stage: LoadingStage | None = None
    progress: int | None = None
    stage_message: str | None = None
    elapsed_seconds: float | None = None
    result: GeneratedResult | None = None
    error: ErrorState | None = None
    error_category: str | None = None
    suggested_action: str | None = None
    can_retry: bool = False
    download_error: ErrorState | None = None


class GenerationOrchestrator:
    """State machine for one user session.

    States: idle -> loading -> success | error, with cancel, retry, dismiss
    and generate-another transitions. Only one attempt is in flight at a
    time. Each attempt gets a token; stage timers and gateway results carrying
    a stale token are ignored, so nothing can land after a terminal
    transition or a cancel.
    """

    def __init__(
        self,
        gateway: GenerationGateway,
        config: StylesConfig | None = None,
        body_data_store: BodyDataStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.config = config or StylesConfig()
        self.body_data_store = body_data_store
        self._clock = clock

        self.session_id = uuid.uuid4().hex[:8]
        self.log = get_logger(__name__, session=self.session_id)

        self.state = GenerationState.IDLE
        self.stage: LoadingStage | None = None
        self.result: GeneratedResult | None = None
        self.error: ErrorState | None = None
        self.download_error: ErrorState | None = None

        self.person_image: UploadedImage | None = None
        self.clothing_image: UploadedImage | None = None
        self.body_data: BodyData | None = body_data_store.load() if body_data_store else None

        self.last_request: GenerationRequest | None = None
        self._attempt_token = 0
        self._started_at: float | None = None
        self._stage_handles: list[asyncio.TimerHandle] = []
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Inputs

    def select_person_image(self, image: UploadedImage | None):
        self.person_image = self._replace_image(self.person_image, image, "person")

    def select_clothing_image(self, image: UploadedImage | None):
        self.clothing_image = self._replace_image(self.clothing_image, image, "clothing")

    def _replace_image(
        self,
        current: UploadedImage | None,
        new: UploadedImage | None,
        label: str,
    ) -> UploadedImage | None:
        if self.state is GenerationState.LOADING:
            raise GenerationInProgressError(f"replace the {label} image")
        if current is not None and current is not new:
            current.release()
        if self.state is not GenerationState.IDLE:
            # New inputs invalidate whatever was shown for the old ones
            self._reset_to_idle()
        return new

    def set_body_data(self, data: BodyData | None):
        self.body_data = data
        if data is not None and self.body_data_store is not None:
            self.body_data_store.save(data)

    @property
    def can_generate(self) -> bool:
        return (
            self.person_image is not None
            and self.clothing_image is not None
            and self.state is not GenerationState.LOADING
        )

    @property
    def elapsed_seconds(self) -> float | None:
        if self.state is not GenerationState.LOADING or self._started_at is None:
            return None
        return self._clock() - self._started_at

    # ------------------------------------------------------------------
    # Transitions

    def start(
        self,
        person_image: UploadedImage | None,
        clothing_image: UploadedImage | None,
        body_data: BodyData | None = None,
    ) -> asyncio.Task | None:
        """Begin a generation attempt.

        Invalid inputs move straight to ``error`` without contacting the
        gateway and return None. Otherwise returns the attempt task.

        Raises:
            GenerationInProgressError: an attempt is already loading
        """
        if self.state is GenerationState.LOADING:
            raise GenerationInProgressError()

        if person_image is not self.person_image:
            self.select_person_image(person_image)
        if clothing_image is not self.clothing_image:
            self.select_clothing_image(clothing_image)
        self.body_data = body_data

        rejection = self._validate_inputs()
        if rejection is not None:
            self.last_request = None
            self._enter_error(rejection)
            return None

        request = build_request(self.person_image, self.clothing_image, body_data)
        return self._launch(request)

    def generate(self) -> asyncio.Task | None:
        """Start an attempt with the currently selected images and body data."""
        return self.start(self.person_image, self.clothing_image, self.body_data)

    async def run(
        self,
        person_image: UploadedImage | None,
        clothing_image: UploadedImage | None,
        body_data: BodyData | None = None,
    ) -> GenerationState:
        """Start an attempt and wait until it is no longer in flight."""
        task = self.start(person_image, clothing_image, body_data)
        if task is not None:
            await asyncio.wait({task})
        return self.state

    def retry(self) -> asyncio.Task:
        """Resend the identical request of the failed attempt."""
        if self.state is not GenerationState.ERROR or self.error is None:
            raise InvalidTransitionError("retry", self.state.value)
        if not self.error.is_retryable or self.last_request is None:
            raise InvalidTransitionError(f"retry a {self.error.code.value}", self.state.value)
        self.log.info("generation.retry", code=self.error.code.value)
        return self._launch(self.last_request)

    def cancel(self):
        """Abandon the in-flight attempt and return to idle.

        Best effort: the HTTP request is aborted when ``abort_on_cancel`` is
        set, and any result that still arrives is ignored.
        """
        if self.state is not GenerationState.LOADING:
            return
        self.log.info("generation.cancelled", token=self._attempt_token, elapsed=self.elapsed_seconds)
        task = self._task
        self._reset_to_idle()
        if self.config.abort_on_cancel and task is not None and not task.done():
            task.cancel()

    def dismiss(self):
        """Clear the error and go back to idle."""
        if self.state is GenerationState.IDLE:
            return
        if self.state is not GenerationState.ERROR:
            raise InvalidTransitionError("dismiss", self.state.value)
        self._reset_to_idle()

    def generate_another(self):
        """Discard the result, keeping images and body data for reuse."""
        if self.state is GenerationState.IDLE:
            return
        if self.state is not GenerationState.SUCCESS:
            raise InvalidTransitionError("generate another", self.state.value)
        self._reset_to_idle()

    async def download(
        self,
        options: DownloadOptions | None = None,
        directory: Path | None = None,
    ) -> Path | None:
        """Export the current result.

        Failures are recorded in ``download_error``; the session stays in
        ``success`` and keeps its result.
        """
        if self.state is not GenerationState.SUCCESS or self.result is None:
            raise InvalidTransitionError("download", self.state.value)

        options = options or DownloadOptions()
        try:
            path = await export_result(
                self.result,
                options,
                directory or self.config.download_dir,
            )
        except DownloadError as e:
            self.log.warning("download.failed", error=str(e))
            self.download_error = make_error_state(
                ErrorCode.DOWNLOAD_ERROR, 500, details=str(e)
            )
            return None

        self.download_error = None
        self.log.info("download.saved", path=str(path))
        return path

    def close(self):
        """Tear down the session and release preview handles."""
        self.cancel()
        for image in (self.person_image, self.clothing_image):
            if image is not None:
                image.release()

    def snapshot(self) -> SessionView:
        view = SessionView(
            state=self.state,
            can_generate=self.can_generate,
            result=self.result,
            error=self.error,
            download_error=self.download_error,
        )
        if self.state is GenerationState.LOADING and self.stage is not None:
            view.stage = self.stage
            view.progress = self.stage.progress
            view.stage_message = self.stage.message
            view.elapsed_seconds = self.elapsed_seconds
        if self.error is not None:
            view.error_category = error_category(self.error.code)
            view.suggested_action = suggested_action(self.error.code)
            view.can_retry = self.error.is_retryable and self.last_request is not None
        return view

    # ------------------------------------------------------------------
    # Internals

    def _validate_inputs(self) -> ErrorState | None:
        checks = validate_pair(self.person_image, self.clothing_image, self.config.upload)
        errors = {check.error for check in checks if not check.is_valid}
        if not errors:
            return None
        raw = RawError(
            message="Input validation failed",
            details=", ".join(sorted(errors)),
            images_missing="no-file-selected" in errors,
            invalid_image_type="invalid-file-type" in errors,
            image_too_large="file-too-large" in errors,
        )
        return classify(raw)

    def _launch(self, request: GenerationRequest) -> asyncio.Task:
        loop = asyncio.get_running_loop()

        self._cancel_stage_timers()
        self._attempt_token += 1
        token = self._attempt_token

        self.result = None
        self.error = None
        self.download_error = None
        self.last_request = request
        self.state = GenerationState.LOADING
        self.stage = LoadingStage.PREPARING
        self._started_at = self._clock()

        self._schedule_stages(loop, token)
        self.log.info("generation.started", token=token, body_data=request.body_data is not None)

        self._task = loop.create_task(self._attempt(token, request))
        return self._task

    def _schedule_stages(self, loop: asyncio.AbstractEventLoop, token: int):
        offsets = self.config.stages.model_dump()
        for stage in STAGE_ORDER:
            delay = offsets[stage.value]
            if delay <= 0:
                self._advance_stage(token, stage)
            else:
                self._stage_handles.append(
                    loop.call_later(delay, self._advance_stage, token, stage)
                )

    def _advance_stage(self, token: int, stage: LoadingStage):
        if token != self._attempt_token or self.state is not GenerationState.LOADING:
            return
        if self.stage is None or STAGE_ORDER.index(stage) > STAGE_ORDER.index(self.stage):
            self.stage = stage

    def _cancel_stage_timers(self):
        for handle in self._stage_handles:
            handle.cancel()
        self._stage_handles.clear()

    async def _attempt(self, token: int, request: GenerationRequest):
        try:
            outcome = await self.gateway.send(request)
            if not self._is_current(token):
                self.log.info("generation.stale_result_ignored", token=token)
                return
            if outcome.ok:
                result = normalize(
                    outcome.response,
                    request.person_image_name,
                    request.clothing_image_name,
                    outcome.elapsed_ms,
                    self.config.generation,
                )
                self._enter_success(result)
            else:
                self._enter_error(classify(outcome.error))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_current(token):
                return
            self.log.exception("generation.unexpected_error", token=token)
            self._enter_error(make_error_state(
                ErrorCode.UNEXPECTED_ERROR, 500, details=str(e) or type(e).__name__
            ))

    def _is_current(self, token: int) -> bool:
        return token == self._attempt_token and self.state is GenerationState.LOADING

    def _enter_success(self, result: GeneratedResult):
        self._cancel_stage_timers()
        self.stage = None
        self._started_at = None
        self.error = None
        self.result = result
        self.state = GenerationState.SUCCESS
        self.log.info(
            "generation.succeeded",
            token=self._attempt_token,
            processing_time=result.processing_time,
            has_image=result.has_image,
        )

    def _enter_error(self, error: ErrorState):
        self._cancel_stage_timers()
        self.stage = None
        self._started_at = None
        self.result = None
        self.error = error
        self.state = GenerationState.ERROR
        self.log.warning(
            "generation.failed",
            token=self._attempt_token,
            code=error.code.value,
            status=error.status,
            retryable=error.is_retryable,
        )

    def _reset_to_idle(self):
        self._cancel_stage_timers()
        # Invalidate anything still in flight for the current attempt
        self._attempt_token += 1
        self.stage = None
        self._started_at = None
        self.result = None
        self.error = None
        self.download_error = None
        self.state = GenerationState.IDLE
