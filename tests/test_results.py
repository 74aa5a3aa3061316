import pytest

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.result import Result
from quizzarium.models.user import User
from quizzarium.services.composer import create_quiz
from quizzarium.services.results import compute_score, submit_result, leaderboard, latest_result


@pytest.fixture
def quiz_id(ctx, client_id):
    return create_quiz(db.session.get(User, client_id), 'Тест', None, None, [], {}).id


@pytest.mark.parametrize('correct, total, score', [
    (3, 4, 75),
    (0, 5, 0),
    (5, 5, 100),
    (1, 8, 13),
    (2, 3, 67),
    (1, 3, 33),
])
def test_compute_score_rounds_half_up(correct, total, score):
    assert compute_score(correct, total) == score


def test_submit_result_stores_score(quiz_id, client_id):
    result = submit_result(quiz_id, client_id, 3, 4)
    assert result.score == 75
    assert result.to_dict()['completed_at']


@pytest.mark.parametrize('correct, total', [
    (0, 0),
    (5, 4),
    (-1, 3),
    (None, 3),
    ('2', 3),
    (True, 1),
])
def test_submit_result_rejects_bad_counts(quiz_id, client_id, correct, total):
    with pytest.raises(ApiError) as exc:
        submit_result(quiz_id, client_id, correct, total)
    assert exc.value.status == 400
    assert Result.query.count() == 0


def test_submit_result_unknown_quiz(ctx, client_id):
    with pytest.raises(ApiError) as exc:
        submit_result(77, client_id, 1, 1)
    assert exc.value.status == 404


def test_leaderboard_uses_latest_attempt_per_user(quiz_id, client_id, other_id, admin_id):
    submit_result(quiz_id, client_id, 4, 4)
    submit_result(quiz_id, other_id, 2, 4)
    submit_result(quiz_id, client_id, 1, 4)
    submit_result(quiz_id, admin_id, 2, 4)

    board = leaderboard(quiz_id)

    assert board['title'] == 'Тест'
    entries = board['leaderboard']
    assert [(e['user_id'], e['score']) for e in entries] == [(other_id, 50), (admin_id, 50), (client_id, 25)]
    assert entries[0]['email'] == 'other@test.local'
    assert Result.query.count() == 4


def test_latest_result(quiz_id, client_id, other_id):
    assert latest_result(quiz_id, client_id) is None
    submit_result(quiz_id, client_id, 1, 2)
    submit_result(quiz_id, client_id, 2, 2)
    assert latest_result(quiz_id, client_id).score == 100
    assert latest_result(quiz_id, other_id) is None
