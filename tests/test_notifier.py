from unittest.mock import patch

import pytest

from fakes import FakeTransport
from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID
from premade_creator.datatypes.errors import ItemTooLarge
from premade_creator.datatypes.event_datatypes import GameEmoji, GameInfo, GuildEventConfig
from premade_creator.notifications.notifier import END_DESCRIPTION, END_TITLE, START_DESCRIPTION, START_TITLE, EventNotifier
from premade_creator.notifications.reaction_tracker import ReactionTracker
from premade_creator.transport.base import ReactionUser

GUILD = GuildID(1)
ANNOUNCE = ChannelID(100)
RL_CHANNEL = ChannelID(200)
OW_CHANNEL = ChannelID(201)


def make_config(games=None, role_ids=None) -> GuildEventConfig:
    if games is None:
        games = [
            GameInfo("Rocket League", GameEmoji("🏎"), RL_CHANNEL),
            GameInfo("Overwatch", GameEmoji("overwatch", 555), OW_CHANNEL, [RoleID(7)]),
        ]
    return GuildEventConfig(ANNOUNCE, "0 * * * * *", "30 * * * * *", role_ids, games)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def tracker():
    return ReactionTracker()


async def build_notifier(tmp_path, transport, tracker, config=None, field_budget=900):
    store = EventConfigStore(tmp_path / "premade.json")
    if config is not None:
        await store.upsert(GUILD, config)
    return EventNotifier(store, tracker, transport, field_budget=field_budget, embed_color=(1, 2, 3))


@pytest.mark.asyncio
async def test_start_posts_announcement_and_tracks_it(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(role_ids=[RoleID(1), RoleID(2)]))

    await notifier.process_start(GUILD)

    assert len(transport.sent) == 1
    channel_id, message = transport.sent[0]
    assert channel_id == ANNOUNCE
    assert message.content == "<@&1>, <@&2>"
    assert message.title == START_TITLE
    assert message.description == START_DESCRIPTION
    assert [(f.name, f.value) for f in message.fields] == [
        ("Games", "🏎 -> Rocket League\n<:overwatch:555> -> Overwatch"),
    ]
    assert message.reactions == [GameEmoji("🏎"), GameEmoji("overwatch", 555)]
    assert message.color == (1, 2, 3)
    assert await tracker.lookup(ANNOUNCE) == MessageID(1001)


@pytest.mark.asyncio
async def test_start_without_roles_has_empty_content(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config())
    await notifier.process_start(GUILD)
    assert transport.sent[0][1].content == ""


@pytest.mark.asyncio
async def test_start_splits_games_into_continued_fields(tmp_path, transport, tracker):
    games = [GameInfo(f"Game {i}", GameEmoji("🎲"), RL_CHANNEL) for i in range(3)]
    # each line is "🎲 -> Game N" (11 characters)
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=games), field_budget=22)

    await notifier.process_start(GUILD)

    fields = transport.sent[0][1].fields
    assert [f.name for f in fields] == ["Games", "Games (cont)"]
    assert fields[0].value == "🎲 -> Game 0\n🎲 -> Game 1"
    assert fields[1].value == "🎲 -> Game 2"


@pytest.mark.asyncio
async def test_start_without_games_posts_nothing(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=[]))
    await notifier.process_start(GUILD)
    assert transport.sent == []
    assert await tracker.lookup(ANNOUNCE) is None


@pytest.mark.asyncio
async def test_start_missing_config_warns(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker)
    with patch("premade_creator.notifications.notifier.logger") as mock_logger:
        await notifier.process_start(GUILD)
    mock_logger.warning.assert_called_once()
    assert transport.sent == []


@pytest.mark.asyncio
async def test_start_oversized_game_line_raises(tmp_path, transport, tracker):
    games = [GameInfo("x" * 50, GameEmoji("🎲"), RL_CHANNEL)]
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=games), field_budget=20)

    with pytest.raises(ItemTooLarge):
        await notifier.process_start(GUILD)
    assert transport.sent == []


@pytest.mark.asyncio
async def test_start_send_failure_clears_tracked_message(tmp_path, transport, tracker):
    await tracker.track(ANNOUNCE, MessageID(1))
    transport.fail_send_to.add(ANNOUNCE)
    notifier = await build_notifier(tmp_path, transport, tracker, make_config())

    await notifier.process_start(GUILD)

    assert await tracker.lookup(ANNOUNCE) is None


@pytest.mark.asyncio
async def test_end_posts_players_per_game(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config())
    await notifier.process_start(GUILD)
    transport.reactions = {
        "🏎": [ReactionUser(UserID(99), bot=True), ReactionUser(UserID(10)), ReactionUser(UserID(11))],
        "<:overwatch:555>": [ReactionUser(UserID(99), bot=True), ReactionUser(UserID(12))],
    }

    await notifier.process_end(GUILD)

    results = transport.sent[1:]
    assert [channel for channel, _ in results] == [RL_CHANNEL, OW_CHANNEL]

    rl_message = results[0][1]
    assert rl_message.title == END_TITLE
    assert rl_message.description == END_DESCRIPTION
    assert rl_message.content == ""
    assert [(f.name, f.value) for f in rl_message.fields] == [("🏎 Rocket League", "<@10>, <@11>")]

    ow_message = results[1][1]
    assert ow_message.content == "<@&7>"
    assert [(f.name, f.value) for f in ow_message.fields] == [("<:overwatch:555> Overwatch", "<@12>")]

    assert await tracker.lookup(ANNOUNCE) is None


@pytest.mark.asyncio
async def test_end_skips_games_nobody_reacted_to(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config())
    await notifier.process_start(GUILD)
    transport.reactions = {"🏎": [ReactionUser(UserID(99), bot=True)]}

    await notifier.process_end(GUILD)

    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_end_splits_long_player_lists(tmp_path, transport, tracker):
    games = [GameInfo("Chess", GameEmoji("♟"), RL_CHANNEL)]
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=games), field_budget=12)
    await notifier.process_start(GUILD)
    transport.reactions = {"♟": [ReactionUser(UserID(n)) for n in (100, 200, 300)]}

    await notifier.process_end(GUILD)

    fields = transport.sent[1][1].fields
    assert [(f.name, f.value) for f in fields] == [
        ("♟ Chess", "<@100>, <@200>"),
        ("♟ Chess (cont)", "<@300>"),
    ]


@pytest.mark.asyncio
async def test_end_is_single_shot(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker, make_config())
    await notifier.process_start(GUILD)
    transport.reactions = {"🏎": [ReactionUser(UserID(10))]}

    await notifier.process_end(GUILD)
    posted = len(transport.sent)

    with patch("premade_creator.notifications.notifier.logger") as mock_logger:
        await notifier.process_end(GUILD)

    assert len(transport.sent) == posted
    mock_logger.warning.assert_called_once()
    assert "Initial message not found" in mock_logger.warning.call_args[0][0]


@pytest.mark.asyncio
async def test_end_continues_after_fetch_and_send_failures(tmp_path, transport, tracker):
    games = [
        GameInfo("Rocket League", GameEmoji("🏎"), RL_CHANNEL),
        GameInfo("Overwatch", GameEmoji("🎯"), OW_CHANNEL),
        GameInfo("Chess", GameEmoji("♟"), ChannelID(202)),
    ]
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=games))
    await notifier.process_start(GUILD)
    transport.fail_fetch_for.add("🏎")
    transport.fail_send_to.add(OW_CHANNEL)
    transport.reactions = {"🎯": [ReactionUser(UserID(1))], "♟": [ReactionUser(UserID(2))]}

    await notifier.process_end(GUILD)

    assert [channel for channel, _ in transport.sent[1:]] == [ChannelID(202)]
    assert await tracker.lookup(ANNOUNCE) is None


@pytest.mark.asyncio
async def test_end_oversized_mention_skips_game(tmp_path, transport, tracker):
    games = [
        GameInfo("Rocket League", GameEmoji("🏎"), RL_CHANNEL),
        GameInfo("Chess", GameEmoji("♟"), ChannelID(202)),
    ]
    notifier = await build_notifier(tmp_path, transport, tracker, make_config(games=games), field_budget=30)
    await notifier.process_start(GUILD)
    transport.reactions = {
        "🏎": [ReactionUser(UserID(10 ** 30))],
        "♟": [ReactionUser(UserID(2))],
    }

    with patch("premade_creator.notifications.notifier.logger") as mock_logger:
        await notifier.process_end(GUILD)

    mock_logger.error.assert_called_once()
    assert [channel for channel, _ in transport.sent[1:]] == [ChannelID(202)]


@pytest.mark.asyncio
async def test_end_missing_config_warns(tmp_path, transport, tracker):
    notifier = await build_notifier(tmp_path, transport, tracker)
    with patch("premade_creator.notifications.notifier.logger") as mock_logger:
        await notifier.process_end(GUILD)
    mock_logger.warning.assert_called_once()
