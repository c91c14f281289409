from __future__ import annotations

import dataclasses
import logging
import random
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .blocks import to_block_markup
from .config import PipelineConfig, load_config
from .errors import (
    AutoBloggerError,
    ConfigError,
    EmptyCandidateSet,
    IncompleteResponse,
    PublicationFailure,
    SynthesisFailure,
)
from .generation import ArticleGenerator
from .imaging import CONTENT_TYPE, TitleCardRenderer
from .layout import build_title_svg, layout_title
from .ledger import TitleLedger, contains
from .llm import LLMError
from .models import ArticleDraft, GenerationRequest, PipelineResult
from .sanitizer import extract_title_candidates, sanitize_response
from .validators import draft_stats
from .wordpress import WordPressClient, WordPressError

logger = logging.getLogger("autoblogger.pipeline")

LogSink = Callable[[str], None]

DRAFT_KEYS = ("body", "excerpt")


class Stage(str, Enum):
    SELECT_DOMAIN = "SelectDomain"
    GENERATE_TITLES = "GenerateTitles"
    SELECT_TITLE = "SelectTitle"
    GENERATE_DRAFT = "GenerateDraft"
    LAYOUT_IMAGE = "LayoutImage"
    SYNTHESIZE_IMAGE = "SynthesizeImage"
    UPLOAD_IMAGE = "UploadImage"
    SEGMENT_BLOCKS = "SegmentBlocks"
    SUBMIT_POST = "SubmitPost"
    RECORD_HISTORY = "RecordHistory"
    COMPLETED = "Completed"
    ABORTED = "Aborted"


class Generator(Protocol):
    def generate_titles(self, domain: str, excluded_titles: Sequence[str]) -> str: ...

    def generate_draft(self, title: str, domain: Optional[str] = None) -> str: ...


class Renderer(Protocol):
    def render(self, svg_markup: str, background_path: Any) -> bytes: ...


class Publisher(Protocol):
    def upload_media(self, data: bytes, content_type: str, file_name: str) -> int: ...

    def create_post(
        self,
        *,
        title: str,
        content: str,
        excerpt: str,
        featured_media_id: int,
        category_ids: Optional[Sequence[int]] = None,
        tag_ids: Optional[Sequence[int]] = None,
    ) -> str: ...


class Ledger(Protocol):
    def load_history(self) -> List[str]: ...

    def append(self, title: str) -> bool: ...


def _noop_sink(message: str) -> None:
    return None


class PublishPipeline:
    """Runs one generate-render-publish job from domain selection to history.

    Stages run strictly in order. The first failure aborts the run; nothing
    that already happened is undone (an uploaded image stays in the media
    library). Only the history append is allowed to fail without aborting,
    since the post is already live at that point.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        generator: Generator,
        renderer: Renderer,
        publisher: Optional[Publisher],
        ledger: Ledger,
        log: Optional[LogSink] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.generator = generator
        self.renderer = renderer
        self.publisher = publisher
        self.ledger = ledger
        self._log = log or _noop_sink
        self._rng = rng or random.Random()
        self.stage = Stage.SELECT_DOMAIN

    def _emit(self, message: str) -> None:
        self._log(message)

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        logger.info("autoblogger.stage.start stage=%s", stage.value)

    def run(self, domain: Optional[str] = None, *, dry_run: Optional[bool] = None) -> PipelineResult:
        is_dry_run = self.config.dry_run if dry_run is None else dry_run
        result: Dict[str, Any] = {"dry_run": is_dry_run}
        self._emit(f"Starting the auto-blogger job at {time.strftime('%Y-%m-%d %H:%M:%S')}")

        try:
            self._enter(Stage.SELECT_DOMAIN)
            chosen_domain = self._select_domain(domain)
            result["domain"] = chosen_domain

            self._enter(Stage.GENERATE_TITLES)
            history = self.ledger.load_history()
            request = GenerationRequest(subject_domain=chosen_domain, excluded_titles=history)
            self._emit(f"Generating title ideas for: {request.subject_domain} ({len(request.excluded_titles)} excluded)")
            raw_titles = self.generator.generate_titles(request.subject_domain, request.excluded_titles)
            candidates = extract_title_candidates(raw_titles).titles

            self._enter(Stage.SELECT_TITLE)
            title = self._select_title(candidates, request.excluded_titles)
            result["title"] = title

            self._enter(Stage.GENERATE_DRAFT)
            draft = self._generate_draft(title, chosen_domain)

            self._enter(Stage.LAYOUT_IMAGE)
            lines = layout_title(draft.title, max_chars=self.config.chars_per_line)
            svg_markup = build_title_svg(lines)
            logger.info("autoblogger.layout lines=%s", len(lines))

            self._enter(Stage.SYNTHESIZE_IMAGE)
            self._emit(f'Adding title to default background: "{draft.title}"')
            image_bytes = self.renderer.render(svg_markup, self.config.background_path)
            file_name = f"featured-image-{int(time.time() * 1000)}.jpg"

            if is_dry_run:
                result["image_path"] = self._write_dry_run_image(image_bytes, file_name)
                self._enter(Stage.SEGMENT_BLOCKS)
                content = to_block_markup(draft.body)
                self._emit(f"Dry run: skipping upload and publication of '{draft.title}' ({len(content)} chars).")
                return self._complete(result)

            self._enter(Stage.UPLOAD_IMAGE)
            media_id = self._upload(image_bytes, file_name)
            result["media_id"] = media_id

            self._enter(Stage.SEGMENT_BLOCKS)
            content = to_block_markup(draft.body)

            self._enter(Stage.SUBMIT_POST)
            post_url = self._submit(draft, content, media_id)
            result["post_url"] = post_url

            self._enter(Stage.RECORD_HISTORY)
            recorded = self.ledger.append(draft.title)
            result["history_recorded"] = recorded
            if not recorded:
                self._emit(f"Warning: post is live but the title could not be saved to history: {draft.title}")
        except (AutoBloggerError, LLMError) as exc:
            return self._abort(result, exc)

        return self._complete(result)

    def _select_domain(self, domain: Optional[str]) -> str:
        if domain and domain.strip():
            return domain.strip()
        if not self.config.domains:
            raise ConfigError("No subject domains configured.")
        return self._rng.choice(list(self.config.domains))

    def _select_title(self, candidates: List[str], history: Sequence[str]) -> str:
        fresh = [title for title in candidates if not contains(title, history)]
        logger.info("autoblogger.titles candidates=%s fresh=%s", len(candidates), len(fresh))
        if not fresh:
            if candidates:
                raise EmptyCandidateSet(f"All {len(candidates)} generated titles were already published.")
            raise EmptyCandidateSet("The model returned no usable titles.")
        title = self._rng.choice(fresh)
        self._emit(f"Selected title: {title}")
        return title

    def _generate_draft(self, title: str, domain: str) -> ArticleDraft:
        self._emit(f"Generating content for topic: {title}")
        raw = self.generator.generate_draft(title, domain)
        fields = sanitize_response(raw, DRAFT_KEYS)
        blank = [key for key in DRAFT_KEYS if not fields[key].strip()]
        if blank:
            raise IncompleteResponse(blank)
        draft = ArticleDraft(title=title, body=fields["body"], excerpt=fields["excerpt"])
        stats = draft_stats(draft.body)
        logger.info(
            "autoblogger.draft words=%s headings=%s paragraphs=%s",
            stats["words"],
            stats["headings"],
            stats["paragraphs"],
        )
        return draft

    def _upload(self, image_bytes: bytes, file_name: str) -> int:
        if self.publisher is None:
            raise SynthesisFailure("No publisher configured for media upload.")
        self._emit("Uploading generated image to WordPress...")
        try:
            media_id = self.publisher.upload_media(image_bytes, CONTENT_TYPE, file_name)
        except WordPressError as exc:
            raise SynthesisFailure(f"Image upload failed: {exc}") from exc
        if not media_id:
            raise SynthesisFailure("Image upload returned no media reference.")
        self._emit(f"Image uploaded successfully. Media ID: {media_id}")
        return media_id

    def _submit(self, draft: ArticleDraft, content: str, media_id: int) -> str:
        self._emit(f"Creating post: {draft.title}")
        try:
            post_url = self.publisher.create_post(
                title=draft.title,
                content=content,
                excerpt=draft.excerpt,
                featured_media_id=media_id,
                category_ids=self.config.category_ids,
                tag_ids=self.config.tag_ids,
            )
        except WordPressError as exc:
            raise PublicationFailure(f"Post submission failed: {exc}") from exc
        if not post_url:
            raise PublicationFailure("Post submission returned no URL.")
        self._emit(f"Post published successfully! URL: {post_url}")
        return post_url

    def _write_dry_run_image(self, image_bytes: bytes, file_name: str) -> Optional[str]:
        if not self.config.dry_run_output_dir:
            return None
        output_dir = Path(self.config.dry_run_output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            path = output_dir / file_name
            path.write_bytes(image_bytes)
        except OSError as exc:
            logger.warning("autoblogger.dry_run.write_failed dir=%s error=%s", output_dir, exc)
            return None
        self._emit(f"Dry run: image written to {path}")
        return str(path)

    def _complete(self, result: Dict[str, Any]) -> PipelineResult:
        self.stage = Stage.COMPLETED
        logger.info("autoblogger.completed title=%s url=%s", result.get("title"), result.get("post_url"))
        self._emit("Blogger job finished.")
        return PipelineResult(ok=True, stage=Stage.COMPLETED.value, **result)

    def _abort(self, result: Dict[str, Any], exc: Exception) -> PipelineResult:
        failed = self.stage
        self.stage = Stage.ABORTED
        reason = f"{type(exc).__name__}: {exc}"
        logger.warning("autoblogger.aborted stage=%s error=%s", failed.value, reason)
        self._emit(f"Aborted at stage {failed.value}: {reason}")
        return PipelineResult(ok=False, stage=failed.value, error=reason, **result)


def build_pipeline(config: PipelineConfig, log: Optional[LogSink] = None) -> PublishPipeline:
    publisher = None if config.dry_run else WordPressClient.from_config(config)
    return PublishPipeline(
        config,
        generator=ArticleGenerator(config),
        renderer=TitleCardRenderer(),
        publisher=publisher,
        ledger=TitleLedger(config.history_path),
        log=log,
    )


def run_pipeline(
    config: Optional[PipelineConfig] = None,
    log: Optional[LogSink] = None,
    *,
    domain: Optional[str] = None,
    dry_run: Optional[bool] = None,
) -> PipelineResult:
    config = config or load_config()
    if dry_run is not None and dry_run != config.dry_run:
        config = dataclasses.replace(config, dry_run=dry_run)
    missing = config.validate()
    if missing:
        raise ConfigError(f"Missing configuration: {', '.join(missing)}.")
    return build_pipeline(config, log).run(domain)
