from app.schemas.leaderboard import BulkEntry
from app.services.identity import resolve_identities


def row(**kwargs):
    return BulkEntry(score=kwargs.pop("score", 1), **kwargs)


async def test_resolves_ids_and_emails_case_insensitively(db, make_user):
    alice = await make_user(email="alice@example.com")
    bob = await make_user(email="bob@example.com")

    resolutions = await resolve_identities(db, [row(user_id=alice.id), row(email="BOB@Example.com")])

    assert [r.user_id for r in resolutions] == [alice.id, bob.id]
    assert all(r.resolved for r in resolutions)


async def test_unknown_email_is_reported(db, make_user):
    await make_user(email="alice@example.com")

    [resolution] = await resolve_identities(db, [row(email="ghost@x.com")])

    assert not resolution.resolved
    assert resolution.reason == 'User with email "ghost@x.com" not found'


async def test_unknown_user_id_is_reported(db):
    [resolution] = await resolve_identities(db, [row(user_id=9999)])

    assert resolution.reason == "User with id 9999 not found"


async def test_non_integer_user_id_is_reported(db, make_user):
    alice = await make_user()

    resolutions = await resolve_identities(
        db, [row(user_id="u-legacy-7"), row(user_id=str(alice.id)), row(user_id=" 9999 ")]
    )

    assert [r.user_id for r in resolutions] == [None, alice.id, None]
    assert resolutions[0].reason == "User with id u-legacy-7 not found"


async def test_row_without_identity_is_reported(db):
    [resolution] = await resolve_identities(db, [row()])

    assert resolution.reason == "Entry missing both userId and email"


async def test_user_id_takes_precedence_over_email(db, make_user):
    alice = await make_user(email="alice@example.com")
    bob = await make_user(email="bob@example.com")

    [resolution] = await resolve_identities(db, [row(user_id=alice.id, email=bob.email)])

    assert resolution.user_id == alice.id


async def test_results_keep_input_order(db, make_user):
    alice = await make_user(email="alice@example.com")
    rows = [row(email="nobody@example.com"), row(user_id=alice.id), row()]

    resolutions = await resolve_identities(db, rows)

    assert [r.entry for r in resolutions] == rows
    assert [r.resolved for r in resolutions] == [False, True, False]
