"""
Session store - persists generated architectures by id.

Last write wins; no transactional semantics across calls.
"""

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from archforge.db.models import ArchitectureRecord, Base
from archforge.ir.errors import ArchitectureNotFoundError
from archforge.ir.graph import ArchitectureGraph

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    @abstractmethod
    def get(self, architecture_id: str) -> Optional[ArchitectureGraph]:
        """Return the stored graph, or None when the id is unknown."""

    @abstractmethod
    def set(self, architecture_id: str, graph: ArchitectureGraph) -> None:
        pass

    def exists(self, architecture_id: str) -> bool:
        return self.get(architecture_id) is not None

    def require(self, architecture_id: str) -> ArchitectureGraph:
        graph = self.get(architecture_id)
        if graph is None:
            raise ArchitectureNotFoundError(architecture_id)
        return graph


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._items: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, architecture_id: str) -> Optional[ArchitectureGraph]:
        with self._lock:
            data = self._items.get(architecture_id)
        return ArchitectureGraph.from_dict(copy.deepcopy(data)) if data else None

    def set(self, architecture_id: str, graph: ArchitectureGraph) -> None:
        data = graph.to_dict()
        data["id"] = architecture_id
        with self._lock:
            self._items[architecture_id] = data

    def exists(self, architecture_id: str) -> bool:
        with self._lock:
            return architecture_id in self._items


class SqlSessionStore(SessionStore):
    """SQLAlchemy-backed store; one row per architecture, JSON payload."""

    def __init__(self, engine, create_tables: bool = True):
        self.engine = engine
        self.Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        if create_tables:
            Base.metadata.create_all(bind=engine)

    def get(self, architecture_id: str) -> Optional[ArchitectureGraph]:
        with self.Session() as session:
            record = session.get(ArchitectureRecord, architecture_id)
            if record is None:
                return None
            return ArchitectureGraph.from_dict(json.loads(record.payload))

    def set(self, architecture_id: str, graph: ArchitectureGraph) -> None:
        data = graph.to_dict()
        data["id"] = architecture_id

        with self.Session() as session:
            session.merge(
                ArchitectureRecord(
                    id=architecture_id,
                    requirements=graph.requirements_text,
                    payload=json.dumps(data),
                )
            )
            session.commit()

        logger.debug("Stored architecture %s", architecture_id)
