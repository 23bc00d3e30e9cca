"""
Basic Usage Example

This example demonstrates the fundamental concepts of handler discovery:
- Defining commands
- Marking handler methods with @command_handler
- Discovering and registering handlers with an instance factory
- Dispatching through the uniform ``await handler(command, token)`` contract

Run with: python examples/basic_usage.py
"""

import asyncio
import logging
from uuid import UUID, uuid4

from pydantic import BaseModel

from commandstack import (
    CancellationToken,
    SingleMessageHandlerRegistration,
    command_handler,
    register_command_handlers,
)

# =============================================================================
# Step 1: Define Commands
# =============================================================================
# Commands are requests to change the system, named in the imperative.


class OpenAccount(BaseModel):
    account_id: UUID
    owner_name: str


class Deposit(BaseModel):
    account_id: UUID
    amount: float


class ExportStatements(BaseModel):
    account_id: UUID
    months: int


# =============================================================================
# Step 2: Write a Handler Class
# =============================================================================
# Any class works. Each marked method handles exactly one command type, taken
# from the annotation of its first parameter. Sync, async and async with a
# cancellation token can be mixed freely.


class AccountHandlers:
    def __init__(self, balances: dict[UUID, float]) -> None:
        self._balances = balances

    @command_handler
    def open_account(self, command: OpenAccount) -> None:
        self._balances[command.account_id] = 0.0
        print(f"Opened account for {command.owner_name}")

    @command_handler
    async def deposit(self, command: Deposit) -> None:
        await asyncio.sleep(0)
        self._balances[command.account_id] += command.amount
        print(f"Deposited {command.amount:.2f}")

    @command_handler
    async def export_statements(
        self, command: ExportStatements, cancellation: CancellationToken
    ) -> None:
        for month in range(command.months):
            await cancellation.sleep(0.05)
            print(f"Exported statement {month + 1}/{command.months}")


# =============================================================================
# Step 3: Discover, Register, Dispatch
# =============================================================================


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    balances: dict[UUID, float] = {}
    registration = SingleMessageHandlerRegistration()

    # The factory is called on every dispatch; here it builds a fresh handler
    # around shared state, as a DI container with a transient scope would.
    register_command_handlers(
        registration,
        AccountHandlers,
        lambda: AccountHandlers(balances),
    )
    print(f"Registered handlers for: {[t.__name__ for t in registration]}")

    account_id = uuid4()
    await registration.resolve(OpenAccount)(OpenAccount(account_id=account_id, owner_name="Alice"))
    await registration.resolve(Deposit)(Deposit(account_id=account_id, amount=100.0))
    print(f"Balance: {balances[account_id]:.2f}")

    # Cancel a long export part way through
    token = CancellationToken()
    export = registration.resolve(ExportStatements)
    task = asyncio.create_task(export(ExportStatements(account_id=account_id, months=12), token))
    await asyncio.sleep(0.12)
    token.cancel()
    try:
        await task
    except asyncio.CancelledError:
        print("Export cancelled")


if __name__ == "__main__":
    asyncio.run(main())
