"""Pipeline orchestration: evidence, prompt, backend call, publication."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Optional

from .config import KarenConfig, load_config
from .context import ActionInputs, RunContext
from .errors import ParseError, PreconditionError
from .github.comments import CommentPoster
from .llm.runner import Backend, create_backend, select_provider
from .logging import get_logger
from .models import RepoInfo, ReviewResult
from .prompting.builder import PromptBuilder
from .publisher import PublishOptions, PublishOutcome, PublishTarget, ReportPublisher
from .repo_scanner import RepoScanner
from .reviewer import KarenReviewer

MODES = ("full", "dry-run")

BackendFactory = Callable[..., Backend]


class RunStage(enum.Enum):
    IDLE = "idle"
    EVIDENCE_GATHERED = "evidence_gathered"
    PROMPT_BUILT = "prompt_built"
    BACKEND_INVOKED = "backend_invoked"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"


@dataclass
class RunOutcome:
    """Result of a completed pipeline run."""

    review: ReviewResult
    provider: str
    previous_score: Optional[int]
    config: KarenConfig
    publish: Optional[PublishOutcome] = None
    dry_run: bool = False


class Orchestrator:
    """Runs one review from inputs to published artifacts, strictly in sequence."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        prompt_builder: PromptBuilder | None = None,
        backend_factory: BackendFactory | None = None,
        publisher_factory: Callable[[RunContext, ActionInputs], ReportPublisher] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.scanner = scanner or RepoScanner()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.backend_factory = backend_factory or create_backend
        self._publisher_factory = publisher_factory or self._default_publisher
        self._clock = clock or (lambda: datetime.now(UTC))
        self.stage = RunStage.IDLE
        self.logger = get_logger("orchestrator")

    def run(self, context: RunContext, inputs: ActionInputs) -> RunOutcome:
        """Execute the pipeline; any KarenError raised before publication aborts without writes."""
        self.stage = RunStage.IDLE
        mode = (inputs.mode or "full").strip().lower()
        if mode not in MODES:
            raise PreconditionError(f"Unknown mode '{inputs.mode}'. Expected one of: {', '.join(MODES)}")

        provider, api_key = select_provider(
            inputs.ai_provider, inputs.anthropic_api_key, inputs.openai_api_key
        )
        self.logger.info("Using %s for Karen review", provider.upper())

        config = load_config(context.workspace)
        publisher = self._publisher_factory(context, inputs)
        previous_score = publisher.previous_score()

        self.logger.info("Karen is reviewing %s", context.repo_name)
        evidence = self.scanner.collect(context.workspace, config)
        self.stage = RunStage.EVIDENCE_GATHERED
        self.logger.debug(
            "Evidence: %d samples, %d bytes", len(evidence.files), evidence.evidence_bytes()
        )

        repo = RepoInfo(name=context.repo_name, description=context.description)
        prompt = self.prompt_builder.build(evidence, config, repo)
        self.stage = RunStage.PROMPT_BUILT

        backend = self.backend_factory(provider, api_key, model=inputs.model or None)
        reviewer = KarenReviewer(
            backend, system_prompt=self.prompt_builder.SYSTEM_PROMPT, clock=self._clock
        )
        raw = reviewer.invoke(prompt)
        self.stage = RunStage.BACKEND_INVOKED

        try:
            review = reviewer.parse(raw, config.weights)
        except ParseError:
            self.stage = RunStage.PARSE_FAILED
            self.logger.debug("Unparseable model output:\n%s", raw)
            raise
        self.stage = RunStage.PARSED
        self.logger.info("Karen Score: %d/100 - %s", review.score.total, review.score.grade)

        outcome = RunOutcome(
            review=review,
            provider=provider,
            previous_score=previous_score,
            config=config,
            dry_run=mode == "dry-run",
        )
        if inputs.post_comment and not inputs.github_token:
            self.logger.warning("post_comment is enabled but no github_token was provided")
        if outcome.dry_run:
            self.logger.info("Dry run: no artifacts written")
        else:
            outcome.publish = publisher.publish(
                review,
                PublishTarget(
                    repo_name=context.repo_name,
                    repository=context.repository,
                    pull_request=context.pull_request_number,
                ),
                PublishOptions(
                    generate_badge=inputs.generate_badge,
                    auto_update_readme=inputs.auto_update_readme,
                    post_comment=inputs.post_comment and bool(inputs.github_token),
                ),
                previous_score=previous_score,
                weights=config.weights,
            )

        min_score = inputs.min_score if inputs.min_score is not None else config.min_score
        self._check_threshold(review, min_score)
        return outcome

    def _check_threshold(self, review: ReviewResult, min_score: int) -> None:
        if min_score <= 0:
            return
        if review.score.total < min_score:
            self.logger.warning(
                "Karen score %d is below minimum threshold %d. %s",
                review.score.total,
                min_score,
                review.bottom_line,
            )
        else:
            self.logger.info(
                "Karen score %d meets minimum threshold %d", review.score.total, min_score
            )

    def _default_publisher(self, context: RunContext, inputs: ActionInputs) -> ReportPublisher:
        return ReportPublisher(
            context.workspace,
            comment_poster=CommentPoster(token=inputs.github_token or None),
            clock=self._clock,
        )


__all__ = ["MODES", "Orchestrator", "RunOutcome", "RunStage"]
