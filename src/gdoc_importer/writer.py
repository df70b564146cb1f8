"""JSON file sink for imported documents."""

import json
import os
import re
import threading
import unicodedata
from pathlib import Path
from typing import Any

from loguru import logger

OUTPUT_SUFFIX = ".lexical.json"


def slugify(title: str) -> str:
    """Lowercase ASCII slug of a title, "document" if nothing is left."""
    normalized = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug[:80].rstrip("-") or "document"


class FileSink:
    """Write imported documents as Lexical JSON files.

    - Do not override files if contents are the same.
    - Never write outside the data directory.
    - Names derived from titles are made unique within a session, and a file
      already holding another document is never reused.
    - Saves are serialized, so one sink can be shared between threads.
    """

    def __init__(self, datadir: str | Path, dry_run: bool = False) -> None:
        self.datadir = str(Path(datadir).resolve())
        self.dry_run = dry_run

        if not dry_run and not Path(self.datadir).is_dir():
            msg = f"Data directory {self.datadir!r} not found"
            raise ValueError(msg)

        logger.debug("Sink ready, datadir {!r}, dry_run {!r}", datadir, dry_run)
        # Absolute paths handed out this session.
        self._unique_names: set[str] = set()
        # Document id -> relative filename, so re-saving a document reuses its file.
        self._names_by_document: dict[str, str] = {}
        self.num_same = 0
        self.num_changed = 0
        self.num_new = 0
        self._lock = threading.Lock()

    def _check_inside(self, fname: str) -> None:
        if not os.path.normpath(fname).startswith(self.datadir + os.sep):
            msg = f"Path escapes datadir: {fname!r}"
            raise ValueError(msg)

    def make_unique_name(self, base: str, *, suffix: str = "") -> str:
        """Append numbers to base until (base + suffix) was not handed out before."""
        unique_str = ""
        unique_count = 0
        while True:
            fname = str(Path(self.datadir) / (base + unique_str + suffix))
            self._check_inside(fname)
            if fname not in self._unique_names:
                break
            unique_count += 1
            unique_str = f"-{unique_count}"
        self._unique_names.add(fname)
        return base + unique_str

    def make_data_file(self, fname_rel: str, *, data: Any) -> str:
        """Serialize data to a file relative to the data directory; return the action taken."""
        if Path(fname_rel).is_absolute():
            msg = f"must be relative: {fname_rel!r}"
            raise ValueError(msg)
        fname = str(Path(self.datadir) / fname_rel)
        self._check_inside(fname)
        contents = json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False) + "\n"

        action = "create"
        try:
            with open(fname, encoding="utf-8") as f:
                if f.read() == contents:
                    self.num_same += 1
                    return "same"
            action = "update"
        except (FileNotFoundError, UnicodeDecodeError):
            pass

        if action == "update":
            self.num_changed += 1
        else:
            self.num_new += 1

        if self.dry_run:
            logger.info("dry-run: would {} {!r}", action, fname)
        else:
            logger.debug("Writing ({}) {!r}", action, fname)
            Path(fname).parent.mkdir(parents=True, exist_ok=True)
            with open(fname, "w", encoding="utf-8") as f:
                f.write(contents)
        return action

    def _is_free_for(self, fname_rel: str, document_id: str) -> bool:
        """Whether a file is missing or already holds this document."""
        try:
            with open(Path(self.datadir) / fname_rel, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return True
        except (OSError, ValueError):
            return False
        return isinstance(data, dict) and data.get("documentId") == document_id

    def _name_for(self, document_id: str, title: str) -> str:
        """Slug-based file name that does not clobber another document's file."""
        base = slugify(title)
        while True:
            fname_rel = self.make_unique_name(base, suffix=OUTPUT_SUFFIX) + OUTPUT_SUFFIX
            if self._is_free_for(fname_rel, document_id):
                return fname_rel
            logger.debug("{!r} holds another document, trying the next name", fname_rel)

    def save(self, document_id: str, title: str, content: dict[str, Any]) -> Path:
        """Save a document's Lexical content; return the file path."""
        with self._lock:
            fname_rel = self._names_by_document.get(document_id)
            if fname_rel is None:
                fname_rel = self._name_for(document_id, title)
                self._names_by_document[document_id] = fname_rel
            action = self.make_data_file(
                fname_rel, data={"title": title, "documentId": document_id, "content": content}
            )
        logger.info("Saved {!r} ({})", fname_rel, action)
        return Path(self.datadir) / fname_rel
