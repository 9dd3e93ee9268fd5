import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List

from harmony.core.errors import StorageUnavailable, WriteFailed
from harmony.models.track import CoverArt, TrackRecord

TRACK_COLUMNS = [
    "id",
    "name",
    "artist",
    "payload",
    "duration",
    "cover",
    "cover_mime_type",
]


@dataclass(frozen=True)
class DatabaseContext:
    database_path: Path
    init_sql_path: Path


class Database:
    """Keyed track store. One record per id; every write commits before returning."""

    def __init__(self, context: DatabaseContext):
        self.context = context

    def connect_to_database(self, timeout: float = 5) -> sqlite3.Connection:
        database_path = self.context.database_path
        conn = None
        try:
            conn = sqlite3.connect(database_path, timeout=timeout)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=FULL")
            conn.commit()
            return conn
        except sqlite3.Error as e:
            print(
                f"Error connecting to the sqlite database. database path: {database_path} Exception: {e}"
            )
            if conn is not None:
                conn.close()
            raise StorageUnavailable(str(e)) from e

    def initialize(self) -> None:
        database_path = self.context.database_path
        if database_path.exists():
            print("Database already exists, so skipping")
            self._check_schema()
            return

        try:
            database_path.parent.mkdir(parents=True, exist_ok=True)
            init_script = self.context.init_sql_path.read_text()
        except OSError as e:
            print(f"Unable to prepare database at {database_path}: {e}")
            raise StorageUnavailable(str(e)) from e

        conn = self.connect_to_database()
        try:
            conn.executescript(init_script)
            conn.commit()
        except sqlite3.Error as e:
            print(
                f"Error loading sqlite init script, found at path {self.context.init_sql_path} with exception {e}"
            )
            conn.rollback()
            raise StorageUnavailable(str(e)) from e
        finally:
            conn.close()

    def _check_schema(self) -> None:
        conn = self.connect_to_database()
        try:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        except sqlite3.Error as e:
            print(f"Existing database is unreadable: {e}")
            raise StorageUnavailable(str(e)) from e
        finally:
            conn.close()

        table_names = {row[0] for row in rows}
        missing = {"tracks", "playlist_order"} - table_names
        if missing:
            raise StorageUnavailable(f"database is missing tables {sorted(missing)}")

    def put(self, record: TrackRecord, timeout: float = 5) -> None:
        cover = record.cover
        entry = (
            record.id,
            record.name,
            record.artist,
            record.payload,
            record.duration,
            cover.data if cover else None,
            cover.mime_type if cover else None,
        )
        put_sql_query = (
            "INSERT INTO tracks (id, name, artist, payload, duration, cover, cover_mime_type) "
            "VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET "
            "name = excluded.name, artist = excluded.artist, payload = excluded.payload, "
            "duration = excluded.duration, cover = excluded.cover, "
            "cover_mime_type = excluded.cover_mime_type"
        )

        conn = self._connect_for_write(timeout)
        try:
            conn.execute(put_sql_query, entry)
            conn.commit()
        except sqlite3.Error as e:
            print(f"Failed to put track {record.id} ({record.name}): {e}")
            conn.rollback()
            raise WriteFailed(f"could not save {record.name}") from e
        finally:
            conn.close()

    def remove(self, track_id: str, timeout: float = 5) -> None:
        conn = self._connect_for_write(timeout)
        try:
            conn.execute("DELETE FROM tracks WHERE id = ?", (track_id,))
            conn.commit()
        except sqlite3.Error as e:
            print(f"failed to delete {track_id} from tracks. {e}")
            conn.rollback()
            raise WriteFailed(f"could not delete track {track_id}") from e
        finally:
            conn.close()

    def get_all(self, timeout: float = 5) -> List[TrackRecord]:
        conn = self.connect_to_database(timeout=timeout)
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(
                "SELECT " + ", ".join(TRACK_COLUMNS) + " FROM tracks ORDER BY rowid_order"
            ).fetchall()
        except sqlite3.Error as e:
            print(f"Failed to read tracks: {e}")
            raise StorageUnavailable(str(e)) from e
        finally:
            conn.close()

        return [_row_to_record(row) for row in rows]

    def save_order(self, track_ids: List[str], timeout: float = 5) -> None:
        conn = self._connect_for_write(timeout)
        try:
            conn.execute("DELETE FROM playlist_order")
            conn.executemany(
                "INSERT INTO playlist_order (position, track_id) VALUES (?, ?)",
                list(enumerate(track_ids)),
            )
            conn.commit()
        except sqlite3.Error as e:
            print(f"Failed to save playlist order: {e}")
            conn.rollback()
            raise WriteFailed("could not save playlist order") from e
        finally:
            conn.close()

    def get_order(self, timeout: float = 5) -> List[str]:
        conn = self.connect_to_database(timeout=timeout)
        try:
            rows = conn.execute(
                "SELECT track_id FROM playlist_order ORDER BY position"
            ).fetchall()
        except sqlite3.Error as e:
            print(f"Failed to read playlist order: {e}")
            raise StorageUnavailable(str(e)) from e
        finally:
            conn.close()

        return [str(row[0]) for row in rows]

    def get_ordered(self, timeout: float = 5) -> List[TrackRecord]:
        records = self.get_all(timeout=timeout)
        by_id = {record.id: record for record in records}

        ordered: List[TrackRecord] = []
        for track_id in self.get_order(timeout=timeout):
            record = by_id.pop(track_id, None)
            if record is not None:
                ordered.append(record)

        # Records never written to the order list keep insertion order
        ordered.extend(record for record in records if record.id in by_id)
        return ordered

    def _connect_for_write(self, timeout: float) -> sqlite3.Connection:
        try:
            return self.connect_to_database(timeout=timeout)
        except StorageUnavailable as e:
            raise WriteFailed(str(e)) from e


def _row_to_record(row: sqlite3.Row) -> TrackRecord:
    cover = None
    if row["cover"] is not None:
        cover = CoverArt(
            data=bytes(row["cover"]),
            mime_type=row["cover_mime_type"] or "image/jpeg",
        )

    payload = row["payload"]
    return TrackRecord(
        id=row["id"],
        name=row["name"],
        artist=row["artist"],
        payload=bytes(payload) if payload is not None else None,
        duration=float(row["duration"] or 0.0),
        cover=cover,
    )
