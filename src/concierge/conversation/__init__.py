from .models import Entity, RouterOutcome, Turn, TurnAuthor
from .pipeline import APOLOGY_TEXT, ConversationPipeline, PipelineState, TurnOutcome
from .store import ConversationStore

__all__ = [
    "APOLOGY_TEXT",
    "ConversationPipeline",
    "ConversationStore",
    "Entity",
    "PipelineState",
    "RouterOutcome",
    "Turn",
    "TurnAuthor",
    "TurnOutcome",
]
