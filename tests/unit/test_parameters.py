"""
Tests for binding call-site arguments to procedure parameters.
"""
import datetime
import decimal

import numpy as np
import pytest
from procbridge.database import Parameter
from procbridge.exceptions import InvalidOperationError, MappingError
from procbridge.parameters import bind_parameters
from procbridge.signature import SignatureBuilder
from procbridge.strategy.sqlserver import OUTPUT_DECIMAL_SCALE
from procbridge.types import DbType, ParameterDirection

IN = ParameterDirection.INPUT
OUT = ParameterDirection.OUTPUT


def test_ordinal_binding(ordinal_signature, fake_database):
    """Transactions never consume an argument"""
    params = bind_parameters(ordinal_signature, fake_database, ['A', 'B'])

    assert params == [
        Parameter('IN_strCustomerName', DbType.STRING, 'A', IN),
        Parameter('OUT_intStatus', DbType.INT32, None, OUT),
        Parameter('IN_intRegion', DbType.INT32, 'B', IN),
    ]


def test_boolean_inputs_bound_as_integers(boolean_signature, fake_database):
    params = bind_parameters(boolean_signature, fake_database, [7, True])
    assert params[1].name == 'IN_intActive'
    assert params[1].db_type is DbType.INT32
    assert params[1].value == 1

    params = bind_parameters(boolean_signature, fake_database, [7, False])
    assert params[1].value == 0
    assert type(params[1].value) is int


def test_arguments_not_modified(boolean_signature, fake_database):
    args = [7, True]
    bind_parameters(boolean_signature, fake_database, args)
    assert args == [7, True]
    assert args[1] is True


def test_output_parameters_have_no_value(boolean_signature, fake_database):
    params = bind_parameters(boolean_signature, fake_database, [7, True])
    outputs = [p for p in params if p.is_output]
    assert [(p.name, p.db_type, p.value) for p in outputs] == [
        ('OUT_intWasActive', DbType.INT32, None),
        ('OUT_intChanges', DbType.INT32, None),
    ]


@pytest.mark.parametrize('args', [
    ['A'],
    ['A', 'B', 'C'],
    [],
])
def test_argument_count_mismatch(ordinal_signature, fake_database, args):
    with pytest.raises(InvalidOperationError, match='2 input parameters'):
        bind_parameters(ordinal_signature, fake_database, args)
    assert fake_database.calls == []


def test_naming_options_applied(fake_database):
    sig = (SignatureBuilder('GetStatus', package='ORDERS', omit_direction=True)
           .input('customerName', str)
           .output('status', int)
           .build())
    params = bind_parameters(sig, fake_database, ['ACME'])
    assert [p.name for p in params] == ['strCustomerName', 'intStatus']

    sig = (SignatureBuilder('GetStatus', package='ORDERS', omit_type=True)
           .input('customerName', str)
           .build())
    assert bind_parameters(sig, fake_database, ['ACME'])[0].name == 'IN_customerName'


def test_values_normalized(fake_database):
    sig = (SignatureBuilder('Record', package='AUDIT')
           .input('count', np.int64)
           .input('ratio', float)
           .input('stamp', datetime.datetime)
           .build())
    params = bind_parameters(sig, fake_database, [np.int64(3), np.float64('nan'),
                                                  np.datetime64('2024-01-02T03:04')])
    assert [p.value for p in params] == [3, None, datetime.datetime(2024, 1, 2, 3, 4)]
    assert [p.db_type for p in params] == [DbType.INT64, DbType.DOUBLE, DbType.DATETIME]


def test_unsupported_type(fake_database):
    sig = SignatureBuilder('Upload', package='FILES').input('payload', bytes).build()
    with pytest.raises(MappingError):
        bind_parameters(sig, fake_database, [b'data'])


def test_parameters_created_by_database(fake_database, mocker):
    """The database's parameter factory creates every parameter"""
    spy = mocker.spy(fake_database, 'create_parameter')
    sig = (SignatureBuilder('GetStatus', package='ORDERS')
           .input('customerName', str)
           .output('status', int)
           .build())
    bind_parameters(sig, fake_database, ['ACME'])

    assert spy.call_count == 2
    spy.assert_any_call('IN_strCustomerName', DbType.STRING, 'ACME', IN)
    spy.assert_any_call('OUT_intStatus', DbType.INT32, None, OUT)


class TestDecimalOutputScale:
    """SQL Server output decimals get a fixed scale"""

    @pytest.fixture
    def refund_signature(self):
        return (SignatureBuilder('Refund', package='ORDERS')
                .input('amount', decimal.Decimal)
                .output('refund', decimal.Decimal)
                .output('status', int)
                .build())

    def test_scale_on_sqlserver(self, refund_signature, create_fake_database):
        db = create_fake_database(dialect='mssql')
        amount, refund, status = bind_parameters(refund_signature, db, [decimal.Decimal('1.5')])

        assert refund.scale == OUTPUT_DECIMAL_SCALE == 6
        assert amount.scale is None
        assert status.scale is None

    @pytest.mark.parametrize('dialect', [None, 'postgresql', 'oracle'])
    def test_no_scale_elsewhere(self, refund_signature, create_fake_database, dialect):
        db = create_fake_database(dialect=dialect)
        params = bind_parameters(refund_signature, db, [decimal.Decimal('1.5')])
        assert all(p.scale is None for p in params)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
