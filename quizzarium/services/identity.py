# quizzarium/services/identity.py
"""
Выдача и перенумерация плотных ID (викторины, категории)

Плотные ID занимают диапазон 1..N без пропусков. Новая запись получает
наименьший свободный ID, после удаления оставшиеся записи перенумеровываются
по возрастанию старого ID. Все функции, работающие с БД, выполняются внутри
транзакции вызывающего кода и сами ничего не коммитят.
"""
import logging

from sqlalchemy import update

from quizzarium import db

logger = logging.getLogger(__name__)


def allocate(existing_ids):
    """
    Наименьшее положительное целое, отсутствующее в existing_ids

    Args:
        existing_ids (iterable[int]): Занятые ID

    Returns:
        int: Свободный ID
    """
    taken = set(existing_ids)
    new_id = 1
    while new_id in taken:
        new_id += 1
    return new_id


def repack(ordered_rows):
    """
    План перенумерации записей в 1..N

    Args:
        ordered_rows: Записи с атрибутом id, отсортированные по возрастанию id

    Returns:
        list[tuple[int, int]]: Пары (старый ID, новый ID) только для
        изменившихся записей
    """
    moves = []
    for position, row in enumerate(ordered_rows, start=1):
        if row.id != position:
            moves.append((row.id, position))
    return moves


def next_id(model):
    """Свободный плотный ID для таблицы модели"""
    existing = db.session.execute(db.select(model.id)).scalars().all()
    return allocate(existing)


def repack_table(model):
    """
    Перенумеровывает ID таблицы модели в рамках текущей транзакции

    Дочерние записи следуют за родителем через ON UPDATE CASCADE.

    Args:
        model: Модель с плотным первичным ключом id

    Returns:
        list[tuple[int, int]]: Применённые пары (старый ID, новый ID)
    """
    rows = db.session.execute(db.select(model.id).order_by(model.id)).all()
    moves = repack(rows)
    if not moves:
        return moves

    # Объекты со старыми ключами в identity map больше не соответствуют строкам
    moved = {old_id for old_id, _ in moves}
    for key in list(db.session.identity_map.keys()):
        if key[0] is model and key[1][0] in moved:
            db.session.expunge(db.session.identity_map[key])

    # По возрастанию: целевой ID к этому моменту всегда свободен
    for old_id, new_id in moves:
        db.session.execute(
            update(model)
            .where(model.id == old_id)
            .values(id=new_id)
            .execution_options(synchronize_session=False)
        )
    db.session.expire_all()

    logger.info("Перенумерованы ID %s: %s", model.__tablename__, moves)
    return moves
