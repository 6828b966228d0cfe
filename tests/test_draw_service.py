from sqlalchemy import select

from lucky_draw.models.draw import Draw
from lucky_draw.models.game import GameStatus
from lucky_draw.realtime import game_channel
from lucky_draw.repositories.game_repository import GameRepository
from lucky_draw.services.draw_service import DrawError, DrawService
from lucky_draw.services.game_service import GameService


def _set_prize(session, game, slot_number, name, grade):
    prize = GameRepository().get_prize_by_slot(session, game.id, slot_number)
    prize.prize_name = name
    prize.prize_grade = grade
    session.commit()
    return prize


def test_winning_draw(db_session, make_game):
    game = make_game()
    _set_prize(db_session, game, 3, "상품권 10만원", "1등")

    result = DrawService().draw_prize(db_session, game.id, 3, "Mina", "session_1_abc")
    db_session.commit()

    assert result.success
    assert result.http_status == 201
    assert result.slot_number == 3
    assert result.prize_name == "상품권 10만원"
    assert result.prize_grade == "1등"
    assert result.is_winner is True
    draw = db_session.get(Draw, result.draw_id)
    assert draw.player_name == "Mina"
    assert GameRepository().get_prize_by_slot(db_session, game.id, 3).is_drawn


def test_blank_prize_is_not_a_win(db_session, make_game):
    game = make_game()

    result = DrawService().draw_prize(db_session, game.id, 1, "Mina", "s1")

    assert result.success
    assert result.prize_name == "꽝"
    assert result.prize_grade is None
    assert result.is_winner is False
    assert result.to_dict()["prize_grade"] is None


def test_missing_name_or_session_is_checked_first(db_session):
    service = DrawService()

    for name, sid in (("", "s1"), ("   ", "s1"), ("Mina", ""), (None, None)):
        result = service.draw_prize(db_session, "no-such-game", 1, name, sid)
        assert result.error == DrawError.NO_PLAYER_NAME.value
        assert result.http_status == 400


def test_unknown_game(db_session):
    result = DrawService().draw_prize(db_session, "no-such-game", 1, "Mina", "s1")

    assert result.error == DrawError.GAME_NOT_FOUND.value
    assert result.http_status == 404
    assert result.to_dict() == {"success": False, "error": "GAME_NOT_FOUND", "message": "Game not found."}


def test_inactive_game_messages_differ(db_session, make_game):
    waiting = make_game(status=GameStatus.WAITING.value)
    ended = make_game(status=GameStatus.ENDED.value)
    service = DrawService()

    not_started = service.draw_prize(db_session, waiting.id, 1, "Mina", "s1")
    finished = service.draw_prize(db_session, ended.id, 1, "Mina", "s1")

    assert not_started.error == finished.error == DrawError.GAME_NOT_ACTIVE.value
    assert not_started.http_status == 409
    assert not_started.message != finished.message


def test_one_draw_per_session(db_session, make_game):
    game = make_game()
    service = DrawService()
    assert service.draw_prize(db_session, game.id, 1, "Mina", "s1").success
    db_session.commit()

    again = service.draw_prize(db_session, game.id, 2, "Mina", "s1")

    assert again.error == DrawError.ALREADY_PARTICIPATED.value
    assert again.http_status == 409
    assert not GameRepository().get_prize_by_slot(db_session, game.id, 2).is_drawn


def test_participation_is_checked_before_slot(db_session, make_game):
    game = make_game()
    service = DrawService()
    service.draw_prize(db_session, game.id, 1, "Mina", "s1")
    db_session.commit()

    assert service.draw_prize(db_session, game.id, 99, "Mina", "s1").error == DrawError.ALREADY_PARTICIPATED.value


def test_slot_taken_and_missing(db_session, make_game):
    game = make_game()
    service = DrawService()
    service.draw_prize(db_session, game.id, 1, "Mina", "s1")
    db_session.commit()

    taken = service.draw_prize(db_session, game.id, 1, "Joon", "s2")
    missing = service.draw_prize(db_session, game.id, 11, "Joon", "s2")

    assert taken.error == DrawError.ALREADY_DRAWN.value
    assert missing.error == DrawError.SLOT_NOT_FOUND.value
    assert missing.http_status == 404


class _LosesUpdateRace(GameRepository):
    def mark_prize_drawn(self, session, prize_id):
        return False


def test_lost_conditional_update_reports_already_drawn(db_session, make_game):
    game = make_game()

    result = DrawService(_LosesUpdateRace()).draw_prize(db_session, game.id, 1, "Mina", "s1")

    assert result.error == DrawError.ALREADY_DRAWN.value
    assert db_session.scalars(select(Draw)).all() == []


class _StaleParticipationCheck(GameRepository):
    """Misses the first lookup, as if another request inserted concurrently."""

    def __init__(self):
        self.calls = 0

    def find_draw_for_session(self, session, game_id, session_id):
        self.calls += 1
        if self.calls == 1:
            return None
        return super().find_draw_for_session(session, game_id, session_id)


def test_unique_constraint_backs_up_participation_check(db_session, make_game):
    game = make_game()
    DrawService().draw_prize(db_session, game.id, 1, "Mina", "s1")
    db_session.commit()

    result = DrawService(_StaleParticipationCheck()).draw_prize(db_session, game.id, 2, "Mina", "s1")
    db_session.commit()

    assert result.error == DrawError.ALREADY_PARTICIPATED.value
    # the conditional update on slot 2 was rolled back with the failed insert
    assert not GameRepository().get_prize_by_slot(db_session, game.id, 2).is_drawn
    assert len(GameRepository().list_draws(db_session, game.id)) == 1


def test_draw_is_published_after_commit_only(db_session, make_game, hub):
    game = make_game()
    watcher = hub.subscribe(game_channel(game.id))
    drawer = hub.subscribe(game_channel(game.id), session_id="s1")

    DrawService().draw_prize(db_session, game.id, 4, "Mina", "s1")
    assert watcher.pending() == 0

    db_session.commit()

    events = [watcher.get(timeout=0).event for _ in range(3)]
    assert events == ["prizes", "draws", "draw_completed"]
    # the drawer already knows its result; only the table changes reach it
    assert [drawer.get(timeout=0).event for _ in range(drawer.pending())] == ["prizes", "draws"]


def test_rolled_back_draw_is_not_published(db_session, make_game, hub):
    game = make_game()
    watcher = hub.subscribe(game_channel(game.id))

    DrawService().draw_prize(db_session, game.id, 4, "Mina", "s1")
    db_session.rollback()

    assert watcher.pending() == 0


def test_winning_draws_count_towards_stats(db_session, make_game):
    game = make_game()
    _set_prize(db_session, game, 2, "커피 쿠폰", "5등")
    _set_prize(db_session, game, 5, "상품권 1만원", "4등")
    service = DrawService()
    service.draw_prize(db_session, game.id, 2, "Mina", "s1")
    service.draw_prize(db_session, game.id, 3, "Joon", "s2")
    db_session.commit()

    stats = GameService().load_state(db_session, game).stats

    assert (stats.participants, stats.prize_winners) == (2, 1)
    assert (stats.prize_count, stats.remaining_prizes) == (2, 1)
