"""Plant archetype endpoints (public reference data)."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from waterlog.database import get_db
from waterlog.models import PlantArchetype
from waterlog.schemas import ArchetypeResponse

router = APIRouter(prefix="/api/archetypes", tags=["archetypes"])


@router.get("", response_model=List[ArchetypeResponse])
def list_archetypes(db: Session = Depends(get_db)):
    """List all plant archetypes."""
    return db.query(PlantArchetype).order_by(PlantArchetype.id).all()
