"""Single-session state with explicit mutation entry points."""

import itertools
from dataclasses import dataclass, field, replace
from uuid import UUID

from memory_composer.domain.errors import ImageNotFoundError, PhotoNotFoundError
from memory_composer.domain.generation import GeneratedImage
from memory_composer.domain.photos import Photo, PhotoRole
from memory_composer.services.ledger import ConversationLedger


@dataclass
class CompositionSession:
    """Photo set, generated images and ledger owned by one logical session."""

    demo_mode: bool = False
    ledger: ConversationLedger = field(default_factory=ConversationLedger)
    _photos: list[Photo] = field(default_factory=list)
    _images: list[GeneratedImage] = field(default_factory=list)
    _tokens: dict[str, int] = field(default_factory=dict)
    _pending: set[str] = field(default_factory=set)
    _counter: itertools.count = field(default_factory=itertools.count)

    # Photos

    def add_photo(self, photo: Photo) -> None:
        """Append a photo in upload order."""
        self._photos.append(photo)

    def get_photo(self, photo_id: UUID) -> Photo:
        """Return a photo by id."""
        for photo in self._photos:
            if photo.id == photo_id:
                return photo
        raise PhotoNotFoundError(f"Photo {photo_id} not found")

    def update_photo(self, photo: Photo) -> None:
        """Replace the stored photo that has the same id."""
        for index, existing in enumerate(self._photos):
            if existing.id == photo.id:
                self._photos[index] = photo
                return
        raise PhotoNotFoundError(f"Photo {photo.id} not found")

    def cycle_role(self, photo_id: UUID) -> Photo:
        """Advance a photo to the next role and mark it manually assigned."""
        photo = self.get_photo(photo_id)
        updated = replace(photo, role=photo.role.next(), auto_detected=False)
        self.update_photo(updated)
        return updated

    def remove_photo(self, photo_id: UUID) -> None:
        """Remove a photo explicitly."""
        photo = self.get_photo(photo_id)
        self._photos.remove(photo)

    def photos(self, role: PhotoRole | None = None) -> list[Photo]:
        """Return photos in upload order, optionally filtered by role."""
        return [photo for photo in self._photos if role is None or photo.role == role]

    # Generated images

    def add_image(self, image: GeneratedImage) -> None:
        """Record a new generated image."""
        self._images.append(image)

    def get_image(self, image_id: UUID) -> GeneratedImage:
        """Return a generated image by id, including superseded ones."""
        for image in self._images:
            if image.id == image_id:
                return image
        raise ImageNotFoundError(f"Image {image_id} not found")

    def history(self) -> list[GeneratedImage]:
        """Return every generated image in creation order."""
        return list(self._images)

    def current_images(self) -> list[GeneratedImage]:
        """Return newest-first images that no edit has superseded."""
        superseded = {image.supersedes for image in self._images if image.supersedes}
        return [image for image in reversed(self._images) if image.id not in superseded]

    # Request tokens

    def begin(self, slot: str) -> int:
        """Issue a new authoritative token for an action slot."""
        token = next(self._counter)
        self._tokens[slot] = token
        self._pending.add(slot)
        return token

    def finish(self, slot: str, token: int) -> bool:
        """Settle a call; return False when a later call superseded it."""
        if self._tokens.get(slot) != token:
            return False
        self._pending.discard(slot)
        return True

    def is_busy(self, slot: str | None = None) -> bool:
        """Return whether a slot, or any slot, has a call in flight."""
        if slot is None:
            return bool(self._pending)
        return slot in self._pending

    def reset(self) -> None:
        """Drop photos and images and start a fresh ledger."""
        self._photos.clear()
        self._images.clear()
        self._tokens.clear()
        self._pending.clear()
        self.ledger = ConversationLedger()
