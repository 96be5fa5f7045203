"""
Tests for the procedure invocation entry points.
"""
import decimal

import numpy as np
import pytest
from procbridge.database import Parameter
from procbridge.exceptions import ConfigurationError, InvalidOperationError
from procbridge.exceptions import TypeMismatchError
from procbridge.invoker import as_bool, execute_dataset, execute_non_query
from procbridge.invoker import execute_reader, execute_scalar, marshal_outputs
from procbridge.invoker import prepare_invocation
from procbridge.signature import SignatureBuilder
from procbridge.types import DbType, ParameterDirection
from tests.fixtures.contracts import GetStatus, ListOrders, Undeclared, cancel_order

OUT = ParameterDirection.OUTPUT


class FakeTransaction:
    def commit(self):
        pass

    def rollback(self):
        pass


class TestExecuteNonQuery:
    """Tests for calls returning output values"""

    def test_boolean_outputs(self, boolean_signature, create_fake_database):
        db = create_fake_database(output_values=[0, 5])
        assert execute_non_query(boolean_signature, db, None, 7, True) == [False, 5]

        db = create_fake_database(output_values=[5, 0])
        was_active, changes = execute_non_query(boolean_signature, db, None, 7, True)
        assert was_active is True
        assert changes == 0

    def test_numpy_integer_booleans(self, boolean_signature, create_fake_database):
        db = create_fake_database(output_values=[np.int64(1), 2])
        assert execute_non_query(boolean_signature, db, None, 7, False) == [True, 2]

    def test_boolean_output_wrong_type(self, boolean_signature, create_fake_database):
        db = create_fake_database(output_values=['Y', 1])
        with pytest.raises(TypeMismatchError, match='str'):
            execute_non_query(boolean_signature, db, None, 7, True)

    def test_decorated_contract(self, create_fake_database):
        db = create_fake_database(output_values=[1, decimal.Decimal('12.500000')])
        cancelled, refund = execute_non_query(cancel_order, db, None, 42, True)

        assert cancelled is True
        assert refund == decimal.Decimal('12.5')

        name, procedure, params, rest = db.calls[0]
        assert name == 'execute_non_query'
        assert procedure == 'ORDERS.CancelOrder'
        assert [p.name for p in params] == [
            'IN_intOrderId', 'IN_intNotify', 'OUT_intCancelled', 'OUT_numRefund']
        assert params[1].value == 1

    def test_no_outputs(self, fake_database):
        assert execute_non_query(ListOrders, fake_database, None, 'ACME', None) == []
        assert fake_database.calls[0][1] == 'ORDERS.ListOrders'

    def test_missing_package(self, fake_database):
        with pytest.raises(ConfigurationError):
            execute_non_query(Undeclared, fake_database, None, 'ACME')
        assert fake_database.calls == []

    def test_argument_count(self, fake_database):
        with pytest.raises(InvalidOperationError):
            execute_non_query(GetStatus, fake_database, None, 'ACME')
        assert fake_database.calls == []


class TestTransactionOverload:
    """The transaction is forwarded only when supplied"""

    @pytest.mark.parametrize('execute', [
        execute_non_query, execute_dataset, execute_reader, execute_scalar])
    def test_without_transaction(self, execute, create_fake_database):
        db = create_fake_database(output_values=[3])
        execute(GetStatus, db, None, 'ACME', 1)
        assert db.calls[0][3] == ()

    @pytest.mark.parametrize('execute', [
        execute_non_query, execute_dataset, execute_reader, execute_scalar])
    def test_with_transaction(self, execute, create_fake_database):
        db = create_fake_database(output_values=[3])
        tx = FakeTransaction()
        execute(GetStatus, db, tx, 'ACME', 1)
        assert db.calls[0][0] == execute.__name__
        assert db.calls[0][3] == (tx,)

    def test_transaction_parameter_not_bound(self, create_fake_database):
        db = create_fake_database(output_values=[3])
        assert execute_non_query(GetStatus, db, FakeTransaction(), 'ACME', 1) == [3]
        params = db.calls[0][2]
        assert [p.name for p in params] == ['IN_strCustomerName', 'OUT_intStatus', 'IN_intRegion']


class TestPassthrough:
    """Result-returning calls hand back exactly what the database returns"""

    def test_dataset(self, fake_database):
        assert execute_dataset(ListOrders, fake_database, None, 'ACME', None) is fake_database.dataset
        name, procedure, params, _ = fake_database.calls[0]
        assert name == 'execute_dataset'
        assert procedure == 'ORDERS.ListOrders'
        assert [p.name for p in params] == ['IN_customerName', 'IN_since']

    def test_reader(self, fake_database):
        assert execute_reader(ListOrders, fake_database, None, 'ACME', None) is fake_database.reader

    def test_scalar(self, fake_database):
        assert execute_scalar(ListOrders, fake_database, None, 'ACME', None) is fake_database.scalar

    def test_dataset_calls_are_repeatable(self, fake_database):
        """Identical calls produce identical parameter lists"""
        execute_dataset(ListOrders, fake_database, None, 'ACME', None)
        execute_dataset(ListOrders, fake_database, None, 'ACME', None)
        first, second = fake_database.calls
        assert first == second


def test_prepare_invocation(ordinal_signature, fake_database):
    tx = FakeTransaction()
    invocation = prepare_invocation(ordinal_signature, fake_database, tx, ['A', 'B'])

    assert invocation.procedure == 'ORDERS.GetStatus'
    assert invocation.transaction is tx
    assert isinstance(invocation.parameters, tuple)
    assert [p.value for p in invocation.parameters] == ['A', None, 'B']
    assert invocation == prepare_invocation(ordinal_signature, fake_database, tx, ['A', 'B'])


class TestMarshalOutputs:
    """Tests for output value marshaling"""

    def test_positional_matching(self, boolean_signature):
        params = [
            Parameter('IN_intAccountId', DbType.INT32, 7),
            Parameter('OUT_intWasActive', DbType.INT32, 0, OUT),
            Parameter('OUT_intChanges', DbType.INT32, 4, OUT),
        ]
        assert marshal_outputs(boolean_signature, params) == [False, 4]

    def test_more_outputs_than_declared(self):
        sig = (SignatureBuilder('GetStatus', package='ORDERS')
               .output('status', int)
               .build())
        params = [
            Parameter('OUT_intStatus', DbType.INT32, 1, OUT),
            Parameter('OUT_intExtra', DbType.INT32, 2, OUT),
        ]
        with pytest.raises(InvalidOperationError, match='do not match'):
            marshal_outputs(sig, params)

    def test_no_outputs(self, boolean_signature):
        assert marshal_outputs(boolean_signature, [Parameter('IN_intAccountId', DbType.INT32, 7)]) == []


@pytest.mark.parametrize(('value', 'expected'), [
    (0, False),
    (1, True),
    (5, True),
    (-1, True),
    (np.int32(0), False),
    (np.int64(2), True),
    (True, True),
])
def test_as_bool(value, expected):
    assert as_bool(value) is expected


@pytest.mark.parametrize('value', [None, '1', 1.0, decimal.Decimal(1)])
def test_as_bool_rejects_non_integers(value):
    with pytest.raises(TypeMismatchError):
        as_bool(value)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
