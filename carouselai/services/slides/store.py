"""
SlideStore: the shared, ordered slide collection.

Every write reads the current collection, applies a pure synchronous
transform and writes the whole collection back. Transforms never await, so on
a single event loop each read-transform-write runs without interleaving and
no lock is needed. Completed generation work is reconciled by slide id
through ``replace``; a slide deleted in the meantime is never resurrected.
"""
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import pydantic
import structlog

from carouselai.core.exceptions import NotFoundError, ValidationError
from carouselai.domain.schemas.slide import SlideRecord

logger = structlog.get_logger(__name__)

Snapshot = Tuple[SlideRecord, ...]
SlideUpdater = Callable[[SlideRecord], SlideRecord]
CollectionTransform = Callable[[Snapshot], Iterable[SlideRecord]]
StoreListener = Callable[[Snapshot], None]


class SlideStore:
    """Ordered collection of immutable slide records."""

    def __init__(self, slides: Optional[Iterable[SlideRecord]] = None):
        self._slides: Snapshot = tuple(slides or ())
        self._listeners: List[StoreListener] = []
        self._check_unique(self._slides)

    def __len__(self) -> int:
        return len(self._slides)

    def add_listener(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> Snapshot:
        """Current ordered collection."""
        return self._slides

    def get(self, slide_id: str) -> Optional[SlideRecord]:
        for slide in self._slides:
            if slide.id == slide_id:
                return slide
        return None

    def require(self, slide_id: str) -> SlideRecord:
        slide = self.get(slide_id)
        if slide is None:
            raise NotFoundError("Slide", slide_id)
        return slide

    def index_of(self, slide_id: str) -> int:
        for index, slide in enumerate(self._slides):
            if slide.id == slide_id:
                return index
        return -1

    def ids(self) -> List[str]:
        return [slide.id for slide in self._slides]

    def apply(self, transform: CollectionTransform) -> Snapshot:
        """Replace the collection with ``transform(current)``."""
        new_slides = tuple(transform(self._slides))
        self._check_unique(new_slides)
        self._write(new_slides)
        return new_slides

    def replace(self, slide_id: str, updater: SlideUpdater) -> Optional[SlideRecord]:
        """Apply ``updater`` to the current record with ``slide_id``.

        Returns the new record, or ``None`` when the slide no longer exists,
        in which case nothing is written.
        """
        index = self.index_of(slide_id)
        if index == -1:
            logger.warning("slide_vanished_during_generation", slide_id=slide_id)
            return None

        current = self._slides[index]
        updated = updater(current)
        if updated.id != slide_id:
            raise ValidationError("Slide updates must keep the slide id", field="id")

        slides = list(self._slides)
        slides[index] = updated
        self._write(tuple(slides))
        return updated

    def add(self, slide: SlideRecord, after_id: Optional[str] = None) -> SlideRecord:
        """Insert ``slide`` after ``after_id`` (or at the end)."""
        if self.get(slide.id) is not None:
            raise ValidationError(f"Slide {slide.id} already exists", field="id")

        slides = list(self._slides)
        position = len(slides)
        if after_id is not None:
            index = self.index_of(after_id)
            if index == -1:
                raise NotFoundError("Slide", after_id)
            position = index + 1
        slides.insert(position, slide)
        self._write(tuple(slides))
        return slide

    def update(self, slide_id: str, **fields) -> SlideRecord:
        """User edit of display fields; unknown ids raise ``NotFoundError``."""
        fields.pop("id", None)
        current = self.require(slide_id)
        try:
            candidate = SlideRecord.model_validate({**current.model_dump(), **fields})
        except pydantic.ValidationError as e:
            raise ValidationError(str(e)) from e
        updated = self.replace(slide_id, lambda _: candidate)
        return updated or candidate

    def delete(self, slide_id: str) -> SlideRecord:
        removed = self.require(slide_id)
        self._write(tuple(s for s in self._slides if s.id != slide_id))
        logger.info("slide_deleted", slide_id=slide_id)
        return removed

    def move(self, slide_id: str, new_index: int) -> Snapshot:
        slides = list(self._slides)
        index = self.index_of(slide_id)
        if index == -1:
            raise NotFoundError("Slide", slide_id)
        slide = slides.pop(index)
        new_index = max(0, min(new_index, len(slides)))
        slides.insert(new_index, slide)
        self._write(tuple(slides))
        return self._slides

    def reorder(self, slide_ids: Sequence[str]) -> Snapshot:
        """Reorder to exactly ``slide_ids``, which must name every slide once."""
        if sorted(slide_ids) != sorted(self.ids()):
            raise ValidationError("Reorder must list every slide exactly once", field="slide_ids")
        by_id = {slide.id: slide for slide in self._slides}
        self._write(tuple(by_id[slide_id] for slide_id in slide_ids))
        return self._slides

    def reset(self, slides: Iterable[SlideRecord]) -> Snapshot:
        """Atomically replace the whole collection."""
        new_slides = tuple(slides)
        self._check_unique(new_slides)
        self._write(new_slides)
        return new_slides

    def _write(self, slides: Snapshot) -> None:
        self._slides = slides
        for listener in list(self._listeners):
            listener(slides)

    @staticmethod
    def _check_unique(slides: Snapshot) -> None:
        ids = [slide.id for slide in slides]
        if len(ids) != len(set(ids)):
            raise ValidationError("Slide ids must be unique", field="id")
