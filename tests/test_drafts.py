import pytest

from premade_creator.configuration.drafts import DraftStore
from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from premade_creator.datatypes.errors import NoDraft, PersistenceError, ValidationError
from premade_creator.datatypes.event_datatypes import GameEmoji, GameInfo, GuildEventConfig

GUILD = GuildID(359818298067779584)


@pytest.fixture
def config_store(tmp_path):
    return EventConfigStore(tmp_path / "premade.json")


@pytest.fixture
def drafts(config_store):
    return DraftStore(config_store)


def game(name="Rocket League") -> GameInfo:
    return GameInfo(name, GameEmoji("🏎"), ChannelID(200))


@pytest.mark.asyncio
async def test_get_or_create_defaults_to_empty(drafts):
    draft = await drafts.get_or_create(GUILD)
    assert draft == GuildEventConfig()


@pytest.mark.asyncio
async def test_get_or_create_seeds_from_committed(drafts, config_store):
    committed = GuildEventConfig(ChannelID(1), "0 * * * * *", "30 * * * * *", None, [game()])
    await config_store.upsert(GUILD, committed)

    assert await drafts.get_or_create(GUILD) == committed


@pytest.mark.asyncio
async def test_load_committed_replaces_draft(drafts, config_store):
    await drafts.add_game(GUILD, game("Chess"))
    committed = GuildEventConfig(ChannelID(1), "0 * * * * *", "30 * * * * *")
    await config_store.upsert(GUILD, committed)

    assert await drafts.load_committed(GUILD) == committed
    assert (await drafts.peek(GUILD)).games == []


@pytest.mark.asyncio
async def test_create_replaces_draft_with_fresh_one(drafts):
    await drafts.add_roles(GUILD, [RoleID(1)])
    await drafts.add_game(GUILD, game())

    draft = await drafts.create(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")

    assert draft == GuildEventConfig(ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")


@pytest.mark.asyncio
async def test_create_with_bad_expression_keeps_existing_draft(drafts):
    await drafts.create(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")

    with pytest.raises(ValidationError):
        await drafts.create(GUILD, ChannelID(11), "bad", "0 0 22 * * *")

    assert (await drafts.peek(GUILD)).channel_id == ChannelID(10)


@pytest.mark.asyncio
async def test_set_core_keeps_roles_and_games(drafts):
    await drafts.add_roles(GUILD, [RoleID(1)])
    await drafts.add_game(GUILD, game())

    draft = await drafts.set_core(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")

    assert draft.channel_id == ChannelID(10)
    assert draft.role_ids == [RoleID(1)]
    assert len(draft.games) == 1


@pytest.mark.asyncio
async def test_set_core_is_atomic_on_invalid_expression(drafts):
    await drafts.set_core(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")

    with pytest.raises(ValidationError):
        await drafts.set_core(GUILD, ChannelID(99), "0 0 21 * * *", "* * *")

    draft = await drafts.peek(GUILD)
    assert draft.channel_id == ChannelID(10)
    assert draft.start == "0 0 20 * * *"


@pytest.mark.asyncio
async def test_set_core_without_draft_creates_nothing_on_failure(drafts):
    with pytest.raises(ValidationError):
        await drafts.set_core(GUILD, ChannelID(99), "nope", "0 0 22 * * *")
    assert await drafts.peek(GUILD) is None


@pytest.mark.asyncio
async def test_add_roles_appends(drafts):
    await drafts.add_roles(GUILD, [RoleID(1)])
    draft = await drafts.add_roles(GUILD, [RoleID(2), RoleID(3)])
    assert draft.role_ids == [RoleID(1), RoleID(2), RoleID(3)]


@pytest.mark.asyncio
async def test_returned_drafts_are_copies(drafts):
    draft = await drafts.add_game(GUILD, game())
    draft.games.clear()
    assert len((await drafts.get_or_create(GUILD)).games) == 1


@pytest.mark.asyncio
async def test_commit_without_draft_raises_no_draft(drafts, config_store):
    with pytest.raises(NoDraft):
        await drafts.commit(GUILD)
    assert await config_store.get(GUILD) is None


@pytest.mark.asyncio
async def test_commit_incomplete_draft_raises_validation_error(drafts, config_store):
    await drafts.add_game(GUILD, game())
    with pytest.raises(ValidationError):
        await drafts.commit(GUILD)
    assert await config_store.get(GUILD) is None


@pytest.mark.asyncio
async def test_commit_persists_draft(drafts, config_store, tmp_path):
    await drafts.create(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")
    await drafts.add_game(GUILD, game())

    committed = await drafts.commit(GUILD)

    assert await config_store.get(GUILD) == committed
    assert EventConfigStore(tmp_path / "premade.json").load() == {GUILD: committed}


@pytest.mark.asyncio
async def test_later_draft_edits_do_not_leak_into_committed(drafts, config_store):
    await drafts.create(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")
    await drafts.commit(GUILD)

    await drafts.add_game(GUILD, game())

    assert (await config_store.get(GUILD)).games == []


@pytest.mark.asyncio
async def test_commit_persistence_error_bubbles(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = DraftStore(EventConfigStore(blocker / "premade.json"))
    await store.create(GUILD, ChannelID(10), "0 0 20 * * *", "0 0 22 * * *")

    with pytest.raises(PersistenceError):
        await store.commit(GUILD)
