"""
TransactionOrchestrator - turns notes into submitted transactions.
"""
import logging
from typing import Optional

from .account import AccountId
from .exceptions import LedgerRejectedError, RpcTransportError, SubmissionError
from .felt import Word
from .ledger import LedgerRpc
from .note import Note
from .scripts import TransactionScript
from .transaction import TransactionId, TransactionRequest, TransactionRequestBuilder


class TransactionOrchestrator:
    """
    Stateless relay from transaction requests to the ledger.

    Submission is attempted exactly once; retrying belongs to the caller,
    with a fresh request.
    """

    def __init__(self, ledger: LedgerRpc, logger: Optional[logging.Logger] = None):
        self.ledger = ledger
        self.logger = logger or logging.getLogger(__name__)

    def submit(self, account_id: AccountId, request: TransactionRequest) -> TransactionId:
        """
        Submit a request on behalf of an account.

        Args:
            account_id: Account executing the transaction
            request: Built transaction request

        Returns:
            Identifier of the submitted transaction

        Raises:
            SubmissionError: If the ledger rejects the request
            RpcTransportError: If the ledger cannot be reached
        """
        self.logger.debug(f"Submitting transaction for {account_id.to_hex()[:12]}... ({request.shape})")
        try:
            transaction_id = self.ledger.submit(account_id, request)
        except RpcTransportError:
            # Re-raise transport errors unchanged
            raise
        except LedgerRejectedError as e:
            self.logger.error(f"Ledger rejected transaction from {account_id.to_hex()[:12]}...: {e}")
            raise SubmissionError(f"Transaction rejected: {e}", account_id.to_hex()) from e
        except Exception as e:
            self.logger.error(f"Unexpected error during submit: {e}")
            raise SubmissionError(f"Transaction submission failed: {e}", account_id.to_hex()) from e

        self.logger.info(f"Transaction submitted: {transaction_id.to_hex()}")
        return transaction_id

    def submit_issuance(self, faucet_id: AccountId, mint_note: Note) -> TransactionId:
        """Submit a faucet transaction creating ``mint_note``."""
        request = TransactionRequestBuilder().own_output_notes([mint_note]).build()
        return self.submit(faucet_id, request)

    def submit_consumption(
        self, account_id: AccountId, note: Note, note_args: Optional[Word] = None
    ) -> TransactionId:
        """
        Consume a note the account received out of band.

        The note goes in as an unauthenticated input: the note script checks
        the consumer, so no local authentication data is required.
        """
        request = TransactionRequestBuilder().unauthenticated_input_notes([(note, note_args)]).build()
        return self.submit(account_id, request)

    def submit_custom_script(self, account_id: AccountId, script: TransactionScript) -> TransactionId:
        """Run a custom transaction script, e.g. to deploy an account."""
        request = TransactionRequestBuilder().custom_script(script).build()
        return self.submit(account_id, request)
