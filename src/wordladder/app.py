"""Application wiring: database, stores, scheduling engine and metrics."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from wordladder.config import settings
from wordladder.models.base import SessionLocal, init_db
from wordladder.monitoring import start_monitoring
from wordladder.services.review_session import ReviewSession
from wordladder.services.scheduling_service import SchedulingService
from wordladder.services.stores import SqlProgressStore, SqlWordCatalog


class WordLadder:
    """Main application class."""

    def __init__(self, db: Optional[Session] = None):
        """Initialize the application; an external session is used as is."""
        self.db = db
        self.owns_db = db is None
        self.scheduling: Optional[SchedulingService] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            if self.owns_db:
                init_db()
                self.db = SessionLocal()
                self.logger.info("Database initialized")

            self.scheduling = SchedulingService(SqlWordCatalog(self.db), SqlProgressStore(self.db))
            self.logger.info("Scheduling service created")

            if settings.monitoring.enabled:
                start_monitoring(settings.monitoring.port)
                self.logger.info(f"Metrics server listening on port {settings.monitoring.port}")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            self.stop()
            raise

    def stop(self) -> None:
        """Stop the application."""
        if self.db and self.owns_db:
            self.db.close()
            self.db = None
            self.logger.info("Database session closed")
        self.scheduling = None
        self.running = False

    def start_review(
        self,
        student_id: str,
        unit: Optional[str] = None,
        lesson: Optional[str] = None,
        review_type=None,
    ) -> ReviewSession:
        """Create a review session and load its first word."""
        if not self.running:
            raise RuntimeError("Application is not running")
        session = ReviewSession(self.scheduling, student_id, unit, lesson, review_type)
        session.load_next()
        return session

    def __enter__(self) -> "WordLadder":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
