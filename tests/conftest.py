import asyncio

import pytest

from minuta.config import AssemblyAIConfig, WatcherConfig
from minuta.domain import AudioFile, RemoteJob
from minuta.exceptions import RemoteNetworkError
from minuta.handlers import TranscriptionOrchestrator
from minuta.infrastructure.database import get_engine, init_db, session_factory_for
from minuta.infrastructure.interfaces import EventSink, LLMService, TranscriptionClient
from minuta.repositories import StoreRepository


async def instant_sleep(_seconds):
    await asyncio.sleep(0)


async def drain(orchestrator):
    """Waits until the orchestrator has no background work left."""
    while orchestrator.active_tasks():
        await asyncio.gather(*orchestrator.active_tasks(), return_exceptions=True)


class FakeTranscriptionClient(TranscriptionClient):
    """Scripted provider: each get_job call returns the next job, the last one repeats."""

    def __init__(self, jobs=None, upload_error=None, create_error=None):
        self.jobs = list(jobs or [])
        self.upload_error = upload_error
        self.create_error = create_error
        self.uploads = []
        self.created = []
        self.polls = []

    async def upload(self, file_path, api_key):
        self.uploads.append((file_path, api_key))
        if self.upload_error:
            raise self.upload_error
        return f"https://cdn.example/{len(self.uploads)}"

    async def create_job(self, audio_url, api_key):
        if self.create_error:
            raise self.create_error
        self.created.append(audio_url)
        return f"job-{len(self.created)}"

    async def get_job(self, job_id, api_key):
        self.polls.append(job_id)
        job = self.jobs.pop(0) if len(self.jobs) > 1 else self.jobs[0]
        if isinstance(job, Exception):
            raise job
        return job.model_copy(update={"id": job_id})


class FakeLLM(LLMService):
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class RecordingEventSink(EventSink):
    def __init__(self):
        self.transcripts = []
        self.meetings = []
        self.directory_events = []

    def transcript_updated(self, transcript):
        self.transcripts.append(transcript)

    def meeting_created(self, meeting):
        self.meetings.append(meeting)

    def directory_file_event(self, event):
        self.directory_events.append(event)


def completed_job(utterances=None):
    utterances = utterances or [
        {"speaker": "A", "text": "Good morning everyone.", "start": 0, "end": 1800},
        {"speaker": "B", "text": "Morning, shall we start?", "start": 1900, "end": 3500},
        {"speaker": "A", "text": "Yes, first the budget.", "start": 3600, "end": 5200},
    ]
    return RemoteJob.model_validate(
        {
            "id": "pending",
            "status": "completed",
            "text": " ".join(u["text"] for u in utterances),
            "utterances": utterances,
        }
    )


def running_job(status="processing"):
    return RemoteJob(id="pending", status=status)


@pytest.fixture
def store():
    engine = get_engine("sqlite://")
    init_db(engine)
    return StoreRepository(session_factory_for(engine))


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def assemblyai_config():
    return AssemblyAIConfig(poll_interval_seconds=0, max_poll_attempts=5)


@pytest.fixture
def watcher_config():
    return WatcherConfig(
        stability_threshold_seconds=0.02,
        poll_interval_seconds=0.01,
        settle_timeout_seconds=1.0,
    )


@pytest.fixture
def audio_file(store, tmp_path):
    path = tmp_path / "meeting.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 64)
    record, _ = store.add_audio_file(
        AudioFile(file_name=path.name, file_path=str(path), file_size=67)
    )
    return record


@pytest.fixture
def make_orchestrator(store, events, assemblyai_config):
    def factory(client):
        return TranscriptionOrchestrator(
            store, client, events, assemblyai_config, sleep=instant_sleep
        )

    return factory


@pytest.fixture
def network_error():
    return RemoteNetworkError("create_job", "connection refused")
