"""Dependency injection configuration for the minuta service."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import httpx
from fastapi import HTTPException, Request
from google import genai

from minuta.config import AppConfig
from minuta.domain import PromptTemplates
from minuta.handlers import AudioImporter, EnrichmentHandler, TranscriptionOrchestrator
from minuta.infrastructure import AssemblyAIClient, EventBus, GeminiLLMService
from minuta.infrastructure.database import get_engine, init_db, session_factory_for
from minuta.infrastructure.interfaces import LLMService, StoreGateway, TranscriptionClient
from minuta.logging import setup_logging
from minuta.repositories import StoreRepository
from minuta.watcher import DirectoryWatcher

logger = setup_logging()


@dataclass
class AppContext:
    """Every long-lived component of a running process."""

    config: AppConfig
    store: StoreGateway
    events: EventBus
    importer: AudioImporter
    orchestrator: TranscriptionOrchestrator
    watcher: DirectoryWatcher
    enrichment: EnrichmentHandler | None = None
    http_client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """
        Brings the process to its steady state.

        Seeds the provider credential from the environment when the store has
        none, resumes interrupted transcriptions and restarts the watcher if
        it was enabled.
        """
        if self.config.assemblyai.api_key and not self.store.get_transcription_api_key():
            self.store.save_transcription_api_key(self.config.assemblyai.api_key)
            logger.info("Transcription API key seeded from environment")

        await self.orchestrator.resume_pending()

        watch_config = self.store.get_watch_config()
        if watch_config.enabled and watch_config.directory:
            if not self.watcher.start_watching(watch_config.directory):
                logger.warning(
                    "Watching is enabled but the directory is unavailable",
                    extra={"directory": watch_config.directory},
                )

    async def aclose(self) -> None:
        await self.watcher.aclose()
        await self.orchestrator.aclose()
        if self.http_client is not None:
            await self.http_client.aclose()
        logger.info("Application context closed")


def build_context(
    config: AppConfig,
    store: StoreGateway | None = None,
    transcription_client: TranscriptionClient | None = None,
    llm: LLMService | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AppContext:
    """
    Wires the application from configuration.

    Any of the external collaborators can be passed in to replace the
    default implementation.
    """
    if store is None:
        engine = get_engine(config.storage.database_url)
        init_db(engine)
        store = StoreRepository(session_factory_for(engine))
        logger.info(
            "Database initialized",
            extra={"database_path": str(config.storage.database_path)},
        )

    http_client = None
    if transcription_client is None:
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.assemblyai.request_timeout_seconds)
        )
        transcription_client = AssemblyAIClient(
            http_client,
            config.assemblyai.base_url,
            language_code=config.assemblyai.language_code,
            speaker_labels=config.assemblyai.speaker_labels,
        )

    if llm is None and config.gemini.api_key:
        llm = GeminiLLMService(
            genai.Client(api_key=config.gemini.api_key), config.gemini.model_name
        )

    events = EventBus()
    importer = AudioImporter(store, config.watcher.extensions)
    orchestrator = TranscriptionOrchestrator(
        store, transcription_client, events, config.assemblyai, sleep=sleep
    )
    watcher = DirectoryWatcher(importer, events, config.watcher, sleep=sleep)

    enrichment = None
    if llm is not None:
        prompts = PromptTemplates(
            Path(config.gemini.prompts_dir),
            max_transcript_chars=config.gemini.max_transcript_chars,
            max_sample_utterances=config.gemini.max_sample_utterances,
        )
        enrichment = EnrichmentHandler(store, llm, prompts)

    return AppContext(
        config=config,
        store=store,
        events=events,
        importer=importer,
        orchestrator=orchestrator,
        watcher=watcher,
        enrichment=enrichment,
        http_client=http_client,
    )


def get_context(request: Request) -> AppContext:
    """Returns the context built by the application lifespan."""
    return request.app.state.context


def get_store(request: Request) -> StoreGateway:
    return get_context(request).store


def get_events(request: Request) -> EventBus:
    return get_context(request).events


def get_importer(request: Request) -> AudioImporter:
    return get_context(request).importer


def get_orchestrator(request: Request) -> TranscriptionOrchestrator:
    return get_context(request).orchestrator


def get_watcher(request: Request) -> DirectoryWatcher:
    return get_context(request).watcher


def get_enrichment(request: Request) -> EnrichmentHandler:
    enrichment = get_context(request).enrichment
    if enrichment is None:
        raise HTTPException(status_code=412, detail="Gemini API key not set")
    return enrichment
