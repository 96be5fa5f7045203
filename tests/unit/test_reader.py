"""
Tests for the streaming procedure reader.
"""
import pytest
from procbridge.reader import Reader
from tests.fixtures.mocks import FakeCursor


@pytest.fixture
def cursor():
    return FakeCursor([
        (['order_id', 'status'], [(1, 'open'), (2, 'closed'), (3, 'open')]),
        (['count'], [(3,)]),
    ])


def test_rows_are_dicts(cursor):
    reader = Reader(cursor)
    assert reader.columns == ['order_id', 'status']
    assert reader.fetchone() == {'order_id': 1, 'status': 'open'}
    assert reader.fetchmany(1) == [{'order_id': 2, 'status': 'closed'}]
    assert reader.fetchall() == [{'order_id': 3, 'status': 'open'}]
    assert reader.fetchone() is None


def test_iteration_in_chunks(cursor):
    reader = Reader(cursor, arraysize=2)
    assert [row['order_id'] for row in reader] == [1, 2, 3]


def test_multiple_result_sets(cursor):
    reader = Reader(cursor)
    reader.fetchall()
    assert reader.next_result() is True
    assert reader.columns == ['count']
    assert reader.fetchall() == [{'count': 3}]
    assert reader.next_result() is False


def test_next_result_unsupported():
    class SingleSetCursor:
        description = [('id', None, None, None, None, None, None)]

    assert Reader(SingleSetCursor()).next_result() is False


def test_close_runs_callback_once(cursor, mocker):
    on_close = mocker.Mock()
    reader = Reader(cursor, on_close=on_close)

    reader.close()
    reader.close()

    assert reader.closed
    assert cursor.closed
    on_close.assert_called_once()


def test_context_manager(cursor):
    with Reader(cursor) as reader:
        assert not reader.closed
    assert reader.closed
    assert cursor.closed


def test_empty_columns_without_description():
    assert Reader(FakeCursor([])).columns == []


if __name__ == '__main__':
    __import__('pytest').main([__file__])
