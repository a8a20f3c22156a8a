"""Tests for store operations: field constraints, lifecycle and cascades."""

import asyncio

import pytest

from backend.errors import IntegrityViolationError, NotFoundError, ValidationError
from backend.identity import delete_user, register_user
from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH, Flashcard
from backend.models.user import User
from backend.store import (
    FlashcardDraft,
    create_flashcard,
    create_flashcards,
    create_generation,
    delete_flashcard,
    delete_generation,
    get_flashcard,
    get_generation,
    get_generation_error_log,
    list_flashcards,
    list_flashcards_by_generation,
    list_generation_error_logs,
    list_generations,
    log_generation_error,
    update_flashcard,
    update_generation_accepted_counts,
)
from tests.helpers import ALICE, BOB, as_user, make_error_log, make_flashcard, make_generation

# --- Generations ---


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [1000, 10000])
async def test_generation_accepts_boundary_lengths(users, length: int) -> None:
    generation = await make_generation(ALICE, source_text_length=length)
    assert generation.id is not None
    assert generation.source_text_length == length
    assert generation.accepted_unedited_count is None
    assert generation.accepted_edited_count is None


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [999, 10001, 0])
async def test_generation_rejects_out_of_range_lengths(users, length: int) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_generation(ALICE, source_text_length=length)
    assert exc_info.value.field == "source_text_length"
    assert exc_info.value.constraint == "range"

    async with as_user(ALICE) as db:
        assert await list_generations(db) == []


@pytest.mark.asyncio
async def test_generation_rejects_negative_counts(users) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_generation(ALICE, generated_count=-1)
    assert exc_info.value.constraint == "non_negative"


@pytest.mark.asyncio
async def test_generation_requires_model(users) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_generation(ALICE, model=None)
    assert exc_info.value.field == "model"


@pytest.mark.asyncio
async def test_update_accepted_counts(users) -> None:
    generation = await make_generation(ALICE, generated_count=10)

    async with as_user(ALICE) as db:
        updated = await update_generation_accepted_counts(
            db, generation.id, owner=ALICE, accepted_unedited=4
        )
        assert updated.accepted_unedited_count == 4
        assert updated.accepted_edited_count is None

    async with as_user(ALICE) as db:
        updated = await update_generation_accepted_counts(
            db, generation.id, owner=ALICE, accepted_edited=2
        )
        assert updated.accepted_unedited_count == 4
        assert updated.accepted_edited_count == 2
        assert updated.acceptance_rate == pytest.approx(0.6)

    async with as_user(ALICE) as db:
        stored = await get_generation(db, generation.id)
    assert (stored.accepted_unedited_count, stored.accepted_edited_count) == (4, 2)


@pytest.mark.asyncio
async def test_update_accepted_counts_rejects_negative(users) -> None:
    generation = await make_generation(ALICE)

    async with as_user(ALICE) as db:
        with pytest.raises(ValidationError):
            await update_generation_accepted_counts(
                db, generation.id, owner=ALICE, accepted_unedited=-3
            )

    async with as_user(ALICE) as db:
        assert (await get_generation(db, generation.id)).accepted_unedited_count is None


@pytest.mark.asyncio
async def test_missing_generation_not_found(users) -> None:
    async with as_user(ALICE) as db:
        with pytest.raises(NotFoundError):
            await get_generation(db, 4242)
        with pytest.raises(NotFoundError):
            await delete_generation(db, 4242)


@pytest.mark.asyncio
async def test_generations_listed_newest_first(users) -> None:
    first = await make_generation(ALICE)
    second = await make_generation(ALICE)

    async with as_user(ALICE) as db:
        listed = await list_generations(db)
    assert [g.id for g in listed] == [second.id, first.id]


# --- Flashcards ---


@pytest.mark.asyncio
async def test_flashcard_accepts_maximum_lengths(users) -> None:
    card = await make_flashcard(ALICE, front="f" * FRONT_MAX_LENGTH, back="b" * BACK_MAX_LENGTH)

    async with as_user(ALICE) as db:
        stored = await get_flashcard(db, card.id)
    assert len(stored.front) == 200
    assert len(stored.back) == 500
    assert stored.source == "manual"
    assert stored.generation_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("front", "back", "field"),
    [
        ("f" * 201, "back", "front"),
        ("front", "b" * 501, "back"),
    ],
)
async def test_flashcard_rejects_overlong_text(users, front: str, back: str, field: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_flashcard(ALICE, front=front, back=back)
    assert exc_info.value.field == field
    assert exc_info.value.constraint == "max_length"

    async with as_user(ALICE) as db:
        assert await list_flashcards(db) == []


@pytest.mark.asyncio
async def test_flashcard_rejects_unknown_source(users) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_flashcard(ALICE, source="imported")
    assert exc_info.value.field == "source"


@pytest.mark.asyncio
async def test_update_flashcard_fields(users) -> None:
    generation = await make_generation(ALICE)
    card = await make_flashcard(ALICE, source="ai-full", generation_id=generation.id)

    async with as_user(ALICE) as db:
        updated = await update_flashcard(
            db, card.id, owner=ALICE, back="Paris, on the Seine", source="ai-edited"
        )
    assert updated.front == card.front
    assert updated.back == "Paris, on the Seine"
    assert updated.source == "ai-edited"
    assert updated.generation_id == generation.id


@pytest.mark.asyncio
async def test_update_flashcard_rejects_overlong_front(users) -> None:
    card = await make_flashcard(ALICE)

    async with as_user(ALICE) as db:
        with pytest.raises(ValidationError):
            await update_flashcard(db, card.id, owner=ALICE, front="x" * 201)

    async with as_user(ALICE) as db:
        assert (await get_flashcard(db, card.id)).front == card.front


@pytest.mark.asyncio
async def test_delete_flashcard(users) -> None:
    card = await make_flashcard(ALICE)

    async with as_user(ALICE) as db:
        await delete_flashcard(db, card.id)
    async with as_user(ALICE) as db:
        with pytest.raises(NotFoundError):
            await get_flashcard(db, card.id)
        with pytest.raises(NotFoundError):
            await delete_flashcard(db, card.id)


@pytest.mark.asyncio
async def test_unknown_generation_reference_rejected(users) -> None:
    async with as_user(ALICE) as db:
        with pytest.raises(IntegrityViolationError):
            await create_flashcard(
                db, front="q", back="a", source="ai-full", owner=ALICE, generation_id=999
            )
    async with as_user(ALICE) as db:
        assert await list_flashcards(db) == []


@pytest.mark.asyncio
async def test_batch_create_links_every_card(users) -> None:
    generation = await make_generation(ALICE)
    drafts = [
        FlashcardDraft(front=f"Question {i}", back=f"Answer {i}", source="ai-full")
        for i in range(3)
    ]

    async with as_user(ALICE) as db:
        created = await create_flashcards(
            db, owner=ALICE, cards=drafts, generation_id=generation.id
        )
    assert len(created) == 3
    assert all(card.generation_id == generation.id for card in created)
    assert len({card.id for card in created}) == 3


@pytest.mark.asyncio
async def test_batch_create_is_all_or_nothing(users) -> None:
    drafts = [
        FlashcardDraft(front="fine", back="fine"),
        FlashcardDraft(front="also fine", back="b" * 501),
        FlashcardDraft(front="never reached", back="fine"),
    ]

    async with as_user(ALICE) as db:
        with pytest.raises(ValidationError):
            await create_flashcards(db, owner=ALICE, cards=drafts)

    async with as_user(ALICE) as db:
        assert await list_flashcards(db) == []


# --- Error logs ---


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [1000, 10000])
async def test_error_log_accepts_boundary_lengths(users, length: int) -> None:
    entry = await make_error_log(ALICE, source_text_length=length)

    async with as_user(ALICE) as db:
        stored = await get_generation_error_log(db, entry.id)
    assert stored.source_text_length == length
    assert stored.error_code == "RATE_LIMITED"


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [999, 10001])
async def test_error_log_rejects_out_of_range_lengths(users, length: int) -> None:
    with pytest.raises(ValidationError):
        await make_error_log(ALICE, source_text_length=length)


@pytest.mark.asyncio
async def test_error_log_code_length_limited(users) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await make_error_log(ALICE, error_code="E" * 101)
    assert exc_info.value.field == "error_code"


@pytest.mark.asyncio
async def test_error_logs_listed_newest_first(users) -> None:
    async with as_user(ALICE) as db:
        first = await log_generation_error(
            db,
            owner=ALICE,
            model="openai/gpt-4o-mini",
            source_text_hash="abc",
            source_text_length=1200,
            error_code="TIMEOUT",
            error_message="upstream timed out",
        )
    second = await make_error_log(ALICE)

    async with as_user(ALICE) as db:
        listed = await list_generation_error_logs(db)
    assert [e.id for e in listed] == [second.id, first.id]


# --- Cascades ---


@pytest.mark.asyncio
async def test_deleting_generation_unlinks_its_flashcards(users) -> None:
    generation = await make_generation(ALICE)
    linked = [
        await make_flashcard(ALICE, front=f"Q{i}", source="ai-full", generation_id=generation.id)
        for i in range(2)
    ]
    manual = await make_flashcard(ALICE)

    async with as_user(ALICE) as db:
        await delete_generation(db, generation.id)

    async with as_user(ALICE) as db:
        cards = await list_flashcards(db)
        assert await list_generations(db) == []
    assert {c.id for c in cards} == {c.id for c in linked} | {manual.id}
    assert all(c.generation_id is None for c in cards)


@pytest.mark.asyncio
async def test_deleting_user_removes_everything_they_own(users) -> None:
    generation = await make_generation(ALICE)
    await make_flashcard(ALICE, generation_id=generation.id, source="ai-full")
    await make_flashcard(ALICE)
    await make_error_log(ALICE)
    bob_card = await make_flashcard(BOB)
    await make_error_log(BOB)

    await delete_user(ALICE)

    async with as_user(ALICE) as db:
        assert await list_flashcards(db) == []
        assert await list_generations(db) == []
        assert await list_generation_error_logs(db) == []
    async with as_user(BOB) as db:
        assert [c.id for c in await list_flashcards(db)] == [bob_card.id]
        assert len(await list_generation_error_logs(db)) == 1


@pytest.mark.asyncio
async def test_delete_unknown_user_not_found(store_engine) -> None:
    with pytest.raises(NotFoundError):
        await delete_user("no-such-user")


@pytest.mark.asyncio
async def test_register_user_is_idempotent(users) -> None:
    again = await register_user(ALICE, email="alice@example.com")
    assert again.id == ALICE


@pytest.mark.asyncio
async def test_register_user_rejects_taken_email(users) -> None:
    with pytest.raises(IntegrityViolationError):
        await register_user("c3d4e5f6-0000-4000-8000-000000000003", email="alice@example.com")


@pytest.mark.asyncio
async def test_concurrent_registrations_with_same_email(store_engine) -> None:
    results = await asyncio.gather(
        register_user("e5f6a7b8-0000-4000-8000-000000000005", email="carol@example.com"),
        register_user("f6a7b8c9-0000-4000-8000-000000000006", email="carol@example.com"),
        return_exceptions=True,
    )
    assert len([r for r in results if isinstance(r, User)]) == 1
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], IntegrityViolationError)


@pytest.mark.asyncio
async def test_concurrent_registrations_of_same_account(store_engine) -> None:
    carol = "e5f6a7b8-0000-4000-8000-000000000005"
    results = await asyncio.gather(
        register_user(carol, email="carol@example.com"),
        register_user(carol, email="carol@example.com"),
        return_exceptions=True,
    )
    assert [r.id for r in results] == [carol, carol]


@pytest.mark.asyncio
async def test_unregistered_owner_rejected(store_engine) -> None:
    stranger = "d4e5f6a7-0000-4000-8000-000000000004"
    async with as_user(stranger) as db:
        with pytest.raises(IntegrityViolationError):
            await create_flashcard(db, front="q", back="a", source="manual", owner=stranger)


# --- End to end ---


@pytest.mark.asyncio
async def test_generation_session_lifecycle(users) -> None:
    generation = await make_generation(ALICE, source_text_length=2000, generated_count=3)
    drafts = [
        FlashcardDraft(front="What is ATP?", back="The cell's energy carrier", source="ai-full"),
        FlashcardDraft(front="Where is ATP made?", back="Mitochondria", source="ai-full"),
        FlashcardDraft(front="ATP stands for?", back="Adenosine triphosphate", source="ai-full"),
    ]
    async with as_user(ALICE) as db:
        await create_flashcards(db, owner=ALICE, cards=drafts, generation_id=generation.id)
        await update_generation_accepted_counts(db, generation.id, owner=ALICE, accepted_unedited=3)

    async with as_user(BOB) as db:
        assert await list_flashcards(db) == []

    async with as_user(ALICE) as db:
        linked = await list_flashcards_by_generation(db, generation.id)
        assert len(linked) == 3
        assert all(isinstance(card, Flashcard) for card in linked)
        await delete_generation(db, generation.id)

    async with as_user(ALICE) as db:
        remaining = await list_flashcards(db)
    assert len(remaining) == 3
    assert all(card.generation_id is None for card in remaining)
    assert [card.front for card in remaining] == [d.front for d in drafts]
