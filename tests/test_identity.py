from types import SimpleNamespace

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from quizzarium import db
from quizzarium.models.category import Category
from quizzarium.models.quiz import Quiz
from quizzarium.models.user import User
from quizzarium.services import catalog
from quizzarium.services.composer import create_quiz
from quizzarium.services.identity import allocate, repack, next_id, repack_table


def rows(*ids):
    return [SimpleNamespace(id=i) for i in ids]


def test_allocate_empty_table_starts_at_one():
    assert allocate([]) == 1


def test_allocate_fills_smallest_gap():
    assert allocate({1, 2, 4, 5}) == 3
    assert allocate([2, 3]) == 1
    assert allocate([1, 2, 3]) == 4


def test_repack_contiguous_is_noop():
    assert repack(rows(1, 2, 3)) == []


def test_repack_closes_gaps_in_order():
    assert repack(rows(1, 3, 4)) == [(3, 2), (4, 3)]
    assert repack(rows(2, 5, 9)) == [(2, 1), (5, 2), (9, 3)]


def test_next_id_reads_table(ctx):
    assert next_id(Category) == 1
    db.session.add_all([Category(id=1, name='a', description='a'), Category(id=3, name='c', description='c')])
    db.session.commit()
    assert next_id(Category) == 2


def test_repack_table_moves_rows_and_children(ctx, client_id):
    db.session.add_all([
        Category(id=1, name='a', description='a'),
        Category(id=3, name='c', description='c'),
    ])
    db.session.add(Quiz(id=1, title='q', user_id=client_id, category_id=3))
    db.session.commit()

    moves = repack_table(Category)
    db.session.commit()

    assert moves == [(3, 2)]
    assert [c.id for c in Category.query.order_by(Category.id)] == [1, 2]
    assert db.session.get(Category, 2).name == 'c'
    assert db.session.get(Quiz, 1).category_id == 2


def test_repack_table_without_gaps_returns_nothing(ctx):
    db.session.add(Category(id=1, name='a', description='a'))
    db.session.commit()
    assert repack_table(Category) == []


def test_allocation_holds_off_concurrent_renumbering(ctx, client_id, admin_id):
    author = db.session.get(User, client_id)
    for title in ('A', 'B', 'C'):
        create_quiz(author, title, None, None, [], {})
    db.session.commit()

    allocated = next_id(Quiz)
    assert allocated == 4

    # Пока ID не записан, чужая транзакция не может удалить и перенумеровать
    with Session(db.engine) as other:
        with pytest.raises(OperationalError):
            other.execute(delete(Quiz).where(Quiz.id == 1))

    db.session.add(Quiz(id=allocated, title='D', user_id=client_id))
    db.session.commit()

    catalog.delete_quiz(db.session.get(User, admin_id), 1)
    assert [(q.id, q.title) for q in Quiz.query.order_by(Quiz.id)] == [(1, 'B'), (2, 'C'), (3, 'D')]
