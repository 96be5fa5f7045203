"""
Transaction handling for procedure calls.
"""
import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from procbridge.connection import ProcedureClient

logger = logging.getLogger(__name__)

__all__ = ['Transaction']

_local = threading.local()


class Transaction:
    """Context manager for running several procedure calls in one transaction.

    Pass the transaction as the transaction argument of each call. It is
    committed when the block exits normally and rolled back when it
    raises. Nested transactions on the same client are not supported.

    Examples
        with Transaction(client) as tx:
            execute_non_query(debit_account, client, tx, account_id, amount)
            execute_non_query(credit_account, client, tx, other_id, amount)
    """

    def __init__(self, client: 'ProcedureClient') -> None:
        self.client = client

        if not hasattr(_local, 'active_transactions'):
            _local.active_transactions = {}

        if id(client) in _local.active_transactions:
            raise RuntimeError('Nested transactions are not supported')

    def __enter__(self):
        _local.active_transactions[id(self.client)] = True
        self.client.in_transaction = True
        logger.debug(f'Started transaction for client {id(self.client)}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        try:
            if exc_type is not None:
                self.rollback()
                logger.warning('Rolling back the current transaction')
            else:
                self.commit()
                logger.debug(f'Committed transaction for client {id(self.client)}')
        finally:
            _local.active_transactions.pop(id(self.client), None)
            self.client.in_transaction = False

    def commit(self) -> None:
        self.client.raw_connection.commit()

    def rollback(self) -> None:
        self.client.raw_connection.rollback()
