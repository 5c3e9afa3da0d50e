"""Synonym Routes — duplicate-concept lookup across every loaded document."""

from fastapi import APIRouter, Depends

from app.config import get_settings
from app.core.synonyms import find_matches
from app.schemas.graph import SynonymMatchRequest, SynonymMatchResponse
from app.services.brain_space import BrainSpace, get_brain_space

router = APIRouter(prefix="/api/v1/synonyms", tags=["synonyms"])


@router.post("/matches", response_model=list[SynonymMatchResponse])
async def find_synonym_matches(
    body: SynonymMatchRequest, space: BrainSpace = Depends(get_brain_space),
):
    """Exact label/synonym matches first; substring matches only when none are exact."""
    documents = await space.persistence.load_all(get_settings().default_user_id)
    return [
        SynonymMatchResponse(
            node_id=match.node.id,
            node_label=match.node.data.label,
            brain_dump_id=match.document.id,
            brain_dump_title=match.document.title,
            matched_synonym=match.matched_synonym,
            match_type=match.match_type,
        )
        for match in find_matches(body.input, documents)
    ]
