from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uvicorn

from . import __version__, schemas
from .catalog import CatalogLoadError, import_catalog, load_catalog, load_snapshot
from .config import CATALOG_SOURCE, LOG_LEVEL, RECOMMENDATION_LIMIT
from .database import SessionLocal, get_db, init_db, CheckIn as ORMCheckIn, Video as ORMVideo
from .ranking import SortMode, rank, recommend
from .security import require_password

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title="YogaTools Recommender API",
    description="Ranks yoga sessions against a free-text check-in and recommends the best matches",
    version=__version__,
    dependencies=[Depends(require_password)],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create tables and load the catalog when the store is empty."""
    logger.info("Starting up the session recommender...")
    init_db()
    db = SessionLocal()
    try:
        if db.query(ORMVideo).count() == 0 and CATALOG_SOURCE:
            loaded = await load_catalog(CATALOG_SOURCE)
            import_catalog(db, loaded)
        logger.info(f"Catalog ready with {db.query(ORMVideo).count()} videos.")
    except CatalogLoadError as e:
        logger.error(f"Error loading catalog at startup: {e}")
    finally:
        db.close()


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint to check if the API is running."""
    return {
        "message": "Welcome to the YogaTools Recommender API",
        "status": "running",
        "endpoints": [
            {"path": "/docs", "description": "API documentation"},
            {"path": "/catalog", "description": "Browse, filter and sort the catalog"},
            {"path": "/rank", "description": "Rank the catalog for a check-in"},
            {"path": "/recommend", "description": "Pick the best sessions for a check-in"},
            {"path": "/checkins", "description": "Recent check-ins"},
            {"path": "/admin/import_catalog", "description": "Reload catalog and transcripts"},
        ],
    }


@app.get("/health", response_model=schemas.HealthCheck, tags=["Root"])
def health(db: Session = Depends(get_db)):
    try:
        catalog_size = db.query(ORMVideo).count()
        database_status = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        catalog_size = 0
        database_status = "unavailable"
    return schemas.HealthCheck(
        status="ok" if database_status == "ok" else "degraded",
        version=__version__,
        database_status=database_status,
        catalog_size=catalog_size,
    )


@app.get("/catalog", response_model=List[schemas.CatalogItem], tags=["Catalog"])
def list_catalog(
    filter_text: str = Query("", alias="filter", description="Substring filter over tags, level and title"),
    sort: SortMode = Query(SortMode.SCORE, description="score (catalog order), length or level"),
    db: Session = Depends(get_db),
):
    snapshot = load_snapshot(db)
    ranked = rank("", snapshot.items, snapshot.transcripts, filter_text=filter_text, sort_mode=sort)
    return [entry.item for entry in ranked]


@app.get("/rank", response_model=schemas.RankResponse, tags=["Recommendations"])
def rank_catalog(
    query: str = Query("", description="Free-text check-in, e.g. 'back stiff from a flight, 5 min'"),
    filter_text: str = Query("", alias="filter", description="Substring filter over tags, level and title"),
    sort: SortMode = Query(SortMode.SCORE, description="score, length or level"),
    explain: bool = Query(False, description="Include per-rule score breakdowns"),
    limit: int = Query(RECOMMENDATION_LIMIT, ge=1, le=10, description="Number of recommendations"),
    db: Session = Depends(get_db),
):
    """
    Rank the whole catalog for a check-in.

    - **query**: free text; an empty query scores every session 0
    - **filter**: keeps sessions whose tags, level or title contain it
    - **sort**: display order of `items`
    - **explain**: attach each session's per-rule contributions
    """
    try:
        snapshot = load_snapshot(db)
        ranked = rank(query, snapshot.items, snapshot.transcripts, filter_text=filter_text, sort_mode=sort, explain=explain)
        return schemas.RankResponse(
            query=query.strip(),
            filter=filter_text,
            sort=sort.value,
            count=len(ranked),
            items=ranked,
            recommendations=recommend(ranked, limit),
        )
    except SQLAlchemyError as e:
        logger.error(f"Error ranking catalog: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/recommend", response_model=schemas.RecommendationResponse, tags=["Recommendations"])
def recommend_sessions(request: schemas.RecommendationRequest, db: Session = Depends(get_db)):
    """Recommend up to `limit` sessions with a positive score and log the check-in."""
    try:
        snapshot = load_snapshot(db)
        ranked = rank(request.query, snapshot.items, snapshot.transcripts, filter_text=request.filter, explain=True)
        picks = recommend(ranked, request.limit or RECOMMENDATION_LIMIT)
        primary = picks[0] if picks else None

        db.add(
            ORMCheckIn(
                query=request.query.strip() or "(no input)",
                recommended_id=primary.item.id if primary else None,
                score=primary.score if primary else None,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error generating recommendations: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    if primary:
        logger.info(f"Recommended {primary.item.id} (score {primary.score}) for {request.query.strip()!r}")
    else:
        logger.info(f"No positive match for {request.query.strip()!r}")

    return schemas.RecommendationResponse(
        query=request.query.strip(),
        primary=primary,
        secondary=picks[1] if len(picks) > 1 else None,
        recommendations=picks,
    )


@app.get("/checkins", response_model=List[schemas.CheckIn], tags=["Recommendations"])
def list_checkins(limit: int = Query(50, ge=1, le=500), db: Session = Depends(get_db)):
    return (
        db.query(ORMCheckIn)
        .order_by(ORMCheckIn.created_at.desc(), ORMCheckIn.id.desc())
        .limit(limit)
        .all()
    )


@app.post("/admin/import_catalog", response_model=schemas.ImportResponse, tags=["Admin"])
async def import_catalog_endpoint(
    request: Optional[schemas.ImportRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Reload the catalog and its transcripts, replacing what is stored.

    Uses `source` from the body when given, otherwise CATALOG_SOURCE.
    """
    source = (request.source if request else None) or CATALOG_SOURCE
    logger.info(f"Importing catalog from {source}...")
    try:
        loaded = await load_catalog(source)
    except CatalogLoadError as e:
        logger.error(f"Error importing catalog: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    try:
        videos, transcripts = import_catalog(db, loaded)
    except SQLAlchemyError as e:
        logger.error(f"Error storing catalog: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return schemas.ImportResponse(
        status="success",
        source=source,
        videos=videos,
        transcripts=transcripts,
        skipped=loaded.skipped,
    )


if __name__ == "__main__":
    uvicorn.run("yogatools.main:app", host="0.0.0.0", port=8000, reload=True)
