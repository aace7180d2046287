import pytest

from clasificados.core.errors import DuplicateListing, QuotaExceeded
from clasificados.services.duplicates import DuplicateGuard, photo_hash

from factories import OTHER_ID, OWNER_ID, identity, item_fields, photo


def _publish(service, n, **overrides):
    fields = item_fields(title=f"Item {n}", description=f"Description {n}", **overrides)
    return service.create(identity(), fields, [photo(f"content-{n}".encode())])


def test_photo_hash_is_content_based():
    assert photo_hash(b"abc") == photo_hash(b"abc")
    assert photo_hash(b"abc") != photo_hash(b"abd")


def test_cap_allows_ten_then_rejects_eleventh(service):
    for n in range(10):
        _publish(service, n)

    with pytest.raises(QuotaExceeded):
        _publish(service, 10)


def test_marking_one_sold_frees_a_slot(service):
    listings = [_publish(service, n) for n in range(10)]
    service.set_status(listings[0].id, identity(), "sold")

    eleventh = _publish(service, 10)
    assert eleventh.status == "active"


def test_text_duplicate_ignores_case_and_whitespace(service):
    _publish(service, 1)
    fields = item_fields(title="  ITEM 1 ", description="description 1  ")
    with pytest.raises(DuplicateListing):
        service.create(identity(), fields, [photo(b"fresh")])


def test_text_duplicate_is_per_owner_and_active_only(service):
    first = _publish(service, 1)

    fields = item_fields(title="Item 1", description="Description 1")
    other = service.create(identity(OTHER_ID, "buyer"), fields, [photo(b"other-owner")])
    assert other.id != first.id

    service.set_status(first.id, identity(), "sold")
    again = service.create(identity(), fields, [photo(b"second-try")])
    assert again.status == "active"


def test_photo_duplicate_is_order_independent(service):
    service.create(identity(), item_fields(), [photo(b"front"), photo(b"back")])

    with pytest.raises(DuplicateListing):
        service.create(
            identity(),
            item_fields(title="Different title", description="Different text"),
            [photo(b"back"), photo(b"front")],
        )


def test_photo_subset_is_not_a_duplicate(service):
    service.create(identity(), item_fields(), [photo(b"front"), photo(b"back")])
    created = service.create(
        identity(),
        item_fields(title="Just the front", description="One photo only"),
        [photo(b"front")],
    )
    assert len(created.photos) == 1


def test_missing_stored_file_is_skipped(service, photo_store):
    listing = service.create(identity(), item_fields(), [photo(b"front")])
    photo_store.delete(listing.photos[0].photo_url)

    guard = DuplicateGuard(service.repository, photo_store)
    assert guard.check_photo_duplicate(OWNER_ID, [b"front"]) is False


def test_unreadable_files_are_left_out_of_the_comparison(service, photo_store):
    listing = service.create(identity(), item_fields(), [photo(b"front"), photo(b"back")])
    photo_store.delete(listing.photos[1].photo_url)

    with pytest.raises(DuplicateListing):
        service.create(
            identity(),
            item_fields(title="Only the front", description="Another text"),
            [photo(b"front")],
        )
