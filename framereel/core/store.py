"""Durable record store for a single project (``project.db``).

SQLite through SQLAlchemy. The store knows nothing about frame semantics; it
offers CRUD and ordering over scenes, layers, media and the movie
configuration, and hands out immutable records from ``core.records``.

Error contract:
    * ``ProjectStore.open`` raises ``StoreError`` when the database cannot be
      opened or migrated.
    * Every other mutation returns ``False`` (or ``None`` for inserts) on
      validation or database failure; nothing is partially committed.

Each store owns its own engine. Background work (export) must open a second
store against the same file instead of sharing this one across threads.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
    delete,
    func,
    inspect,
    select,
    text,
    update,
)
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .records import LayerRow, MovieConfig, SceneRow

logger = logging.getLogger(__name__)

Base = declarative_base()

TIMELINE_ID = 1
MOVIE_CONFIG_ID = 1


class StoreError(RuntimeError):
    """The project database could not be opened or initialised."""


class ProjectRecord(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    path = Column(String, nullable=False)


class Timeline(Base):
    __tablename__ = "timeline"

    id = Column(Integer, primary_key=True)


class Scene(Base):
    __tablename__ = "scenes"

    id = Column(Integer, primary_key=True)
    timeline_id = Column(Integer, ForeignKey("timeline.id"), nullable=False)
    sort_order = Column(Integer, nullable=False)
    name = Column(String, nullable=True)

    def __repr__(self):
        return f"<Scene id={self.id} sort_order={self.sort_order} name={self.name}>"


class Layer(Base):
    __tablename__ = "layers"

    id = Column(Integer, primary_key=True)
    scene_id = Column(Integer, ForeignKey("scenes.id"), nullable=False)
    image_path = Column(String, nullable=False)
    # Column keeps its historical name; it stores the start frame.
    start_frame = Column("sort_order", Integer, nullable=False)
    frame_span = Column(Integer, nullable=False, default=1, server_default=text("1"))

    def __repr__(self):
        return (
            f"<Layer id={self.id} scene_id={self.scene_id} image_path={self.image_path} "
            f"start_frame={self.start_frame} frame_span={self.frame_span}>"
        )


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True)
    path = Column(String, nullable=False)


class MovieConfigRecord(Base):
    __tablename__ = "movie_config"

    id = Column(Integer, primary_key=True)
    duration_sec = Column(Float, nullable=False, default=10.0, server_default=text("10"))
    frame_rate = Column(Float, nullable=False, default=24.0, server_default=text("24"))
    width = Column(Integer, nullable=False, default=1920, server_default=text("1920"))
    height = Column(Integer, nullable=False, default=1080, server_default=text("1080"))

    __table_args__ = (CheckConstraint("id = 1", name="ck_movie_config_singleton"),)


# Columns added after the first schema shipped: (table, column, DDL).
_ADDITIVE_COLUMNS = (
    ("scenes", "name", "ALTER TABLE scenes ADD COLUMN name TEXT"),
    (
        "layers",
        "frame_span",
        "ALTER TABLE layers ADD COLUMN frame_span INTEGER NOT NULL DEFAULT 1",
    ),
)


def migrate(engine) -> None:
    """Create missing tables, add missing columns and seed singleton rows.

    Safe to run against any earlier version of the schema, any number of times.
    """
    Base.metadata.create_all(engine)
    inspector = inspect(engine)
    with engine.begin() as conn:
        for table, column, ddl in _ADDITIVE_COLUMNS:
            existing = {c["name"] for c in inspector.get_columns(table)}
            if column not in existing:
                logger.info("migrating: adding %s.%s", table, column)
                conn.execute(text(ddl))
        if conn.execute(select(Timeline.id).limit(1)).first() is None:
            conn.execute(Timeline.__table__.insert().values(id=TIMELINE_ID))
        if conn.execute(select(MovieConfigRecord.id).limit(1)).first() is None:
            defaults = MovieConfig()
            conn.execute(
                MovieConfigRecord.__table__.insert().values(
                    id=MOVIE_CONFIG_ID,
                    duration_sec=defaults.duration_sec,
                    frame_rate=defaults.frame_rate,
                    width=defaults.width,
                    height=defaults.height,
                )
            )


def _layer_row(layer: Layer) -> LayerRow:
    return LayerRow(
        id=layer.id,
        scene_id=layer.scene_id,
        image_path=layer.image_path,
        start_frame=layer.start_frame,
        frame_span=max(1, layer.frame_span or 1),
    )


class ProjectStore:
    def __init__(self, engine, db_path: Path):
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        self.db_path = db_path

    @classmethod
    def open(cls, db_path: str | Path) -> "ProjectStore":
        p = Path(db_path)
        try:
            engine = create_engine(URL.create("sqlite", database=str(p)))
            migrate(engine)
        except SQLAlchemyError as e:
            raise StoreError(f"cannot open project database {p}: {e}") from e
        return cls(engine, p)

    def close(self) -> None:
        self._engine.dispose()

    # --- internal helpers ---
    def _write(self, label: str, fn: Callable[[Session], object]) -> bool:
        try:
            with self._sessions.begin() as session:
                result = fn(session)
        except SQLAlchemyError as e:
            logger.warning("%s failed: %s", label, e)
            return False
        return result is not False

    def _read(self, label: str, fn: Callable[[Session], object], default):
        try:
            with self._sessions() as session:
                return fn(session)
        except SQLAlchemyError as e:
            logger.warning("%s failed: %s", label, e)
            return default

    # --- project catalog ---
    def add_project_row(self, name: str, path: str) -> bool:
        return self._write(
            "add_project_row",
            lambda s: s.add(ProjectRecord(name=name, path=path)),
        )

    # --- movie configuration ---
    def movie_config(self) -> MovieConfig:
        def q(session: Session) -> MovieConfig:
            rec = session.get(MovieConfigRecord, MOVIE_CONFIG_ID)
            if rec is None:
                return MovieConfig()
            return MovieConfig(
                duration_sec=float(rec.duration_sec),
                frame_rate=float(rec.frame_rate),
                width=int(rec.width),
                height=int(rec.height),
            )

        return self._read("movie_config", q, MovieConfig())

    def set_movie_config(self, config: MovieConfig) -> bool:
        if not config.is_valid():
            return False
        return self._write(
            "set_movie_config",
            lambda s: s.merge(
                MovieConfigRecord(
                    id=MOVIE_CONFIG_ID,
                    duration_sec=config.duration_sec,
                    frame_rate=config.frame_rate,
                    width=config.width,
                    height=config.height,
                )
            ),
        )

    # --- scenes ---
    def list_scenes(self) -> List[SceneRow]:
        def q(session: Session) -> List[SceneRow]:
            rows = session.scalars(select(Scene).order_by(Scene.sort_order, Scene.id))
            return [
                SceneRow(
                    id=r.id,
                    sort_order=r.sort_order,
                    name=r.name if r.name is not None else f"Scene {r.id}",
                )
                for r in rows
            ]

        return self._read("list_scenes", q, [])

    def create_scene(self) -> Optional[int]:
        """Append a scene after the current last one; returns its id."""
        created: List[int] = []

        def w(session: Session) -> None:
            last = session.scalar(
                select(func.coalesce(func.max(Scene.sort_order), 0)).where(
                    Scene.timeline_id == TIMELINE_ID
                )
            )
            order = int(last) + 1
            scene = Scene(timeline_id=TIMELINE_ID, sort_order=order, name=f"Scene {order}")
            session.add(scene)
            session.flush()
            created.append(scene.id)

        if not self._write("create_scene", w):
            return None
        return created[0]

    def rename_scene(self, scene_id: int, name: str) -> bool:
        if not name:
            return False
        return self._write(
            "rename_scene",
            lambda s: s.execute(
                update(Scene).where(Scene.id == scene_id).values(name=name)
            ).rowcount
            > 0,
        )

    def delete_scene(self, scene_id: int) -> bool:
        def w(session: Session) -> bool:
            session.execute(delete(Layer).where(Layer.scene_id == scene_id))
            return session.execute(delete(Scene).where(Scene.id == scene_id)).rowcount > 0

        return self._write("delete_scene", w)

    def scene_sort_order(self, scene_id: int) -> Optional[int]:
        return self._read(
            "scene_sort_order",
            lambda s: s.scalar(select(Scene.sort_order).where(Scene.id == scene_id)),
            None,
        )

    def neighbour_scene(self, sort_order: int, before: bool) -> Optional[int]:
        """Id of the scene with the nearest lower (``before``) or higher sort order."""
        if before:
            stmt = (
                select(Scene.id)
                .where(Scene.sort_order < sort_order)
                .order_by(Scene.sort_order.desc(), Scene.id.desc())
            )
        else:
            stmt = (
                select(Scene.id)
                .where(Scene.sort_order > sort_order)
                .order_by(Scene.sort_order.asc(), Scene.id.asc())
            )
        return self._read("neighbour_scene", lambda s: s.scalar(stmt.limit(1)), None)

    def swap_scene_orders(self, first_id: int, second_id: int) -> bool:
        """Exchange the sort orders of two scenes in one transaction."""

        def w(session: Session) -> bool:
            a = session.get(Scene, first_id)
            b = session.get(Scene, second_id)
            if a is None or b is None:
                return False
            a.sort_order, b.sort_order = b.sort_order, a.sort_order
            return True

        return self._write("swap_scene_orders", w)

    # --- layers ---
    def list_layers(self, scene_id: int) -> List[LayerRow]:
        """Layers of a scene ordered by (start_frame, id)."""

        def q(session: Session) -> List[LayerRow]:
            rows = session.scalars(
                select(Layer)
                .where(Layer.scene_id == scene_id)
                .order_by(Layer.start_frame, Layer.id)
            )
            return [_layer_row(r) for r in rows]

        return self._read("list_layers", q, [])

    def get_layer(self, layer_id: int) -> Optional[LayerRow]:
        def q(session: Session) -> Optional[LayerRow]:
            layer = session.get(Layer, layer_id)
            return _layer_row(layer) if layer is not None else None

        return self._read("get_layer", q, None)

    def add_layer(
        self, scene_id: int, image_path: str, start_frame: int, frame_span: int = 1
    ) -> Optional[int]:
        if start_frame < 0 or frame_span < 1 or not image_path:
            return None
        created: List[int] = []

        def w(session: Session) -> None:
            layer = Layer(
                scene_id=scene_id,
                image_path=image_path,
                start_frame=start_frame,
                frame_span=frame_span,
            )
            session.add(layer)
            session.flush()
            created.append(layer.id)

        if not self._write("add_layer", w):
            return None
        return created[0]

    def update_layer(
        self,
        layer_id: int,
        *,
        start_frame: Optional[int] = None,
        frame_span: Optional[int] = None,
    ) -> bool:
        values = {}
        if start_frame is not None:
            if start_frame < 0:
                return False
            values[Layer.start_frame] = start_frame
        if frame_span is not None:
            if frame_span < 1:
                return False
            values[Layer.frame_span] = frame_span
        if not values:
            return False
        return self._write(
            "update_layer",
            lambda s: s.execute(
                update(Layer).where(Layer.id == layer_id).values(values)
            ).rowcount
            > 0,
        )

    def delete_layer(self, layer_id: int) -> bool:
        return self._write(
            "delete_layer",
            lambda s: s.execute(delete(Layer).where(Layer.id == layer_id)).rowcount > 0,
        )

    # --- media catalog ---
    def list_media(self) -> List[str]:
        return self._read(
            "list_media",
            lambda s: list(s.scalars(select(Media.path).order_by(Media.id))),
            [],
        )

    def add_media(self, rel_path: str) -> bool:
        if not rel_path:
            return False
        return self._write("add_media", lambda s: s.add(Media(path=rel_path)))

    def delete_media(self, rel_path: str) -> bool:
        if not rel_path:
            return False
        return self._write(
            "delete_media",
            lambda s: s.execute(delete(Media).where(Media.path == rel_path)).rowcount > 0,
        )

    def rename_media_path(self, old_rel: str, new_rel: str) -> bool:
        """Repoint the catalog row and every referencing layer together."""
        if not old_rel or not new_rel:
            return False

        def w(session: Session) -> None:
            session.execute(update(Media).where(Media.path == old_rel).values(path=new_rel))
            session.execute(
                update(Layer).where(Layer.image_path == old_rel).values(image_path=new_rel)
            )

        return self._write("rename_media_path", w)


__all__ = ["ProjectStore", "StoreError", "migrate", "Base"]
