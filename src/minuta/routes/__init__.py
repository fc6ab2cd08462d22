from .audio_files import router as audio_files_router
from .enrichment import router as enrichment_router
from .events import router as events_router
from .meetings import router as meetings_router
from .settings import router as settings_router
from .transcripts import router as transcripts_router

__all__ = [
    "audio_files_router",
    "enrichment_router",
    "events_router",
    "meetings_router",
    "settings_router",
    "transcripts_router",
]
