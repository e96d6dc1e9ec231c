"""
Transaction CLI commands.

Provides a command-line interface for submitting deposits, payouts and
refunds, checking or resolving their status, and querying wallets.
"""

import asyncio
import sys
from typing import List, Optional

import structlog

from pawapay.core.config import get_settings
from pawapay.core.logging import configure_logging
from pawapay.transactions.models import PaymentIntent, TransactionKind
from pawapay.transactions.orchestrator import TransactionOrchestrator
from pawapay.transactions.outcome import Failure, Outcome
from pawapay.transactions.poller import default_failure_message

logger = structlog.get_logger()

USAGE = """Usage: python -m pawapay.transactions.cli <command> [options]

Commands:
  deposit <amount> <phone> [currency] [provider]          Collect from a wallet
  payout <amount> <phone> <currency> <provider> [text]    Send to a wallet
  refund <deposit_id> <amount> [currency]                 Refund a deposit
  status <kind> <id>                                      Check status once
  resolve <kind> <id>                                     Wait for a final status
  balances [country]                                      Show wallet balances
  predict <phone>                                         Predict the provider

Examples:
  python -m pawapay.transactions.cli deposit 1000 256700000000
  python -m pawapay.transactions.cli payout 500 254700000000 KES MPESA_KEN
  python -m pawapay.transactions.cli resolve deposit 7c4a6b0e-...
  python -m pawapay.transactions.cli balances UGA"""


def print_failure(outcome: Failure):
    """Pretty print a failed outcome."""
    print(f"\nFailed ({outcome.kind.value}): {outcome.message}")
    if outcome.attempts:
        print(f"Attempts: {outcome.attempts}")
    if not outcome.kind.is_terminal_for_payment:
        print("The transaction may still settle. Check its status again before retrying.")


def print_envelope(outcome: Outcome):
    """Pretty print a status lookup or resolve result."""
    envelope = outcome.value
    print(f"\n=== Transaction Status ===\n")
    print(f"Lookup: {envelope.status}")
    if envelope.data:
        data = envelope.data
        if data.reference:
            print(f"Reference: {data.reference}")
        print(f"Status: {data.status}")
        if data.amount:
            print(f"Amount: {data.amount} {data.currency or ''}".rstrip())
        if data.provider_transaction_id:
            print(f"Provider Transaction: {data.provider_transaction_id}")
        if data.failure_reason:
            print(f"Failure: {data.failure_reason.code} - {data.failure_reason.message}")
    if outcome.attempts:
        print(f"Attempts: {outcome.attempts}")
    print()


def _finish(outcome: Outcome) -> int:
    if isinstance(outcome, Failure):
        print_failure(outcome)
        return 1
    print_envelope(outcome)
    return 0


async def submit_command(kind: TransactionKind, intent: PaymentIntent) -> int:
    """Submit a transaction and wait for its final status."""
    async with TransactionOrchestrator.from_settings() as orchestrator:
        print(f"Submitting {kind.value}...")
        submitted = await orchestrator.submit(kind, intent)
        if isinstance(submitted, Failure):
            print_failure(submitted)
            return 1

        result = submitted.value
        print(f"Reference: {result.id}")
        print(f"Acceptance: {result.status}")
        if result.is_rejected:
            reason = result.failure_reason
            if reason and reason.message:
                print(f"Rejected: {reason.code} - {reason.message}")
            else:
                print(f"Rejected: {default_failure_message(result.reference.kind, result.status)}")
            return 1

        print("Waiting for a final status (Ctrl+C to stop)...")
        return _finish(await orchestrator.resolve(result.id, result.reference.kind))


async def status_command(kind: str, transaction_id: str) -> int:
    """Check the status of a transaction once."""
    async with TransactionOrchestrator.from_settings() as orchestrator:
        return _finish(await orchestrator.check_status(transaction_id, kind))


async def resolve_command(kind: str, transaction_id: str) -> int:
    """Poll a transaction until it reaches a final status."""
    async with TransactionOrchestrator.from_settings() as orchestrator:
        policy = orchestrator.policy
        print(
            f"Polling every {policy.interval_seconds}s, "
            f"up to {policy.max_attempts} attempts..."
        )
        return _finish(await orchestrator.resolve(transaction_id, kind))


async def balances_command(country: Optional[str] = None) -> int:
    """Show wallet balances."""
    async with TransactionOrchestrator.from_settings() as orchestrator:
        outcome = await orchestrator.get_wallet_balances(country)
        if isinstance(outcome, Failure):
            print_failure(outcome)
            return 1

        print(f"\n=== Wallet Balances ===\n")
        if not outcome.value.balances:
            print("No wallets found.")
        for wallet in outcome.value.balances:
            provider = f" ({wallet.provider})" if wallet.provider else ""
            print(f"{wallet.country}{provider}: {wallet.balance} {wallet.currency}")
        print()
        return 0


async def predict_command(phone_number: str) -> int:
    """Predict the provider for a phone number."""
    async with TransactionOrchestrator.from_settings() as orchestrator:
        outcome = await orchestrator.predict_provider(phone_number)
        if isinstance(outcome, Failure):
            print_failure(outcome)
            return 1

        predicted = outcome.value
        print(f"Phone: {predicted.phone_number}")
        print(f"Country: {predicted.country}")
        print(f"Provider: {predicted.provider}")
        return 0


def _arg(args: List[str], index: int, default: Optional[str] = None) -> Optional[str]:
    return args[index] if len(args) > index else default


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        return 1

    settings = get_settings()
    configure_logging(settings.ENV, settings.LOG_LEVEL)

    command = args[0]
    try:
        if command == "deposit" and len(args) >= 3:
            intent = PaymentIntent(
                amount=args[1],
                phone_number=args[2],
                currency=_arg(args, 3, "UGX"),
                provider=_arg(args, 4, "MTN_MOMO_UGA"),
            )
            return asyncio.run(submit_command(TransactionKind.DEPOSIT, intent))
        elif command == "payout" and len(args) >= 5:
            intent = PaymentIntent(
                amount=args[1],
                phone_number=args[2],
                currency=args[3],
                provider=args[4],
                description=_arg(args, 5),
            )
            return asyncio.run(submit_command(TransactionKind.PAYOUT, intent))
        elif command == "refund" and len(args) >= 3:
            intent = PaymentIntent(deposit_id=args[1], amount=args[2], currency=_arg(args, 3))
            return asyncio.run(submit_command(TransactionKind.REFUND, intent))
        elif command == "status" and len(args) >= 3:
            return asyncio.run(status_command(args[1], args[2]))
        elif command == "resolve" and len(args) >= 3:
            return asyncio.run(resolve_command(args[1], args[2]))
        elif command == "balances":
            return asyncio.run(balances_command(_arg(args, 1)))
        elif command == "predict" and len(args) >= 2:
            return asyncio.run(predict_command(args[1]))
        else:
            print(f"Unknown command or missing arguments: {' '.join(args)}")
            print(USAGE)
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {str(e)}")
        logger.exception("cli_error", command=command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
