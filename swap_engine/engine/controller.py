"""Quote, approve, simulate, preview and execute a single swap intent."""

from __future__ import annotations

import asyncio
from typing import Callable, Literal, Mapping, Optional

from swap_engine.clients.approval import ApprovalGate
from swap_engine.clients.execution import Signer, TransactionExecutor
from swap_engine.clients.routing import RouteResolver
from swap_engine.clients.simulation import Simulator
from swap_engine.clients.slippage import SlippageCalculator
from swap_engine.clients.transactions import TransactionBuilder
from swap_engine.engine.intent import (
    PRE_EXECUTION_STATES,
    ExecutionGuard,
    IntentState,
    SwapIntent,
    execution_guard,
)
from swap_engine.errors import ErrorKind, Phase, classifier
from swap_engine.models.token import Token
from swap_engine.logging import log

Listener = Callable[[SwapIntent, IntentState, IntentState], None]


class SimulationController:
    """Drive one ``SwapIntent`` at a time through its lifecycle.

    ``Idle -> Quoting -> Quoted -> [AwaitingApproval ->] Simulating ->
    PreviewReady -> Executing -> Settled``, with ``Failed`` reachable from
    any active state and ``Cancelled`` from any pre-execution state.

    Input changes create a new intent with a fresh generation. Quote
    recomputation is debounced and only the latest generation may write
    its result back; older completions are dropped.
    """

    def __init__(
        self,
        resolver: RouteResolver,
        slippage: SlippageCalculator,
        builder: TransactionBuilder,
        approvals: ApprovalGate,
        simulator: Simulator,
        executor: TransactionExecutor,
        signer: Signer,
        chain_id: int,
        *,
        debounce_seconds: float = 0.5,
        slippage_bps: int = 50,
        price_impact_warn_bps: int = 300,
        price_impact_block_bps: int = 1500,
        fallback_policy: Literal["block", "warn"] = "block",
        unit_prices: Optional[Mapping[str, float]] = None,
        guard: Optional[ExecutionGuard] = None,
    ) -> None:
        self.resolver = resolver
        self.slippage = slippage
        self.builder = builder
        self.approvals = approvals
        self.simulator = simulator
        self.executor = executor
        self.signer = signer
        self.chain_id = int(chain_id)
        self.debounce_seconds = max(float(debounce_seconds), 0.0)
        self.slippage_bps = int(slippage_bps)
        self.price_impact_warn_bps = int(price_impact_warn_bps)
        self.price_impact_block_bps = int(price_impact_block_bps)
        self.fallback_policy = fallback_policy
        self.unit_prices: dict[str, float] = {}
        self.set_unit_prices(unit_prices or {})
        self.guard = guard or execution_guard

        self._generation = 0
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()
        self.intent = SwapIntent(generation=0, owner=signer.address, recipient=signer.address)

    @property
    def owner(self) -> str:
        return self.signer.address

    @property
    def spender(self) -> str:
        return self.builder.router_address

    @property
    def state(self) -> IntentState:
        return self.intent.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_unit_prices(self, prices: Mapping[str, float]) -> None:
        self.unit_prices = {symbol.upper(): float(price) for symbol, price in prices.items()}

    def _transition(self, intent: SwapIntent, state: IntentState) -> None:
        previous = intent.state
        intent.state = state
        log.info(f"Intent gen={intent.generation} pair={intent.pair_label} {previous.value} -> {state.value}")
        for listener in list(self._listeners):
            try:
                listener(intent, previous, state)
            except Exception as exc:
                log.warning(f"Intent listener failed listener={listener!r} error={exc}")

    def _fail(self, intent: SwapIntent, kind: ErrorKind, message: str | None = None) -> SwapIntent:
        intent.error_kind = kind
        intent.error_message = message or kind.value
        log.warning(f"Intent gen={intent.generation} pair={intent.pair_label} failed kind={kind.value} reason={intent.error_message}")
        self._transition(intent, IntentState.FAILED)
        return intent

    def _is_live(self, intent: SwapIntent, state: IntentState) -> bool:
        return intent is self.intent and intent.state is state

    def _fail_unless_stale(
        self, intent: SwapIntent, expected: IntentState, exc: BaseException, phase: Phase
    ) -> SwapIntent:
        if not self._is_live(intent, expected):
            log.debug(f"Dropping stale {phase.value} failure gen={intent.generation}: {exc}")
            return intent
        error = classifier.to_swap_error(exc, phase)
        return self._fail(intent, error.kind, error.message)

    # ------------------------------------------------------------------ quoting

    def update_inputs(
        self,
        token_in: Optional[Token],
        token_out: Optional[Token],
        amount_in: int,
        slippage_bps: Optional[int] = None,
    ) -> bool:
        """Replace the live intent; returns False while a transaction is executing."""
        if self.intent.state is IntentState.EXECUTING:
            log.warning(f"Ignoring input change while executing gen={self.intent.generation}")
            return False

        self._generation += 1
        intent = SwapIntent(
            generation=self._generation,
            token_in=token_in,
            token_out=token_out,
            amount_in=int(amount_in),
            owner=self.owner,
            recipient=self.owner,
            slippage_bps=self.slippage_bps if slippage_bps is None else int(slippage_bps),
        )
        self.intent = intent

        if token_in is None or token_out is None or intent.amount_in <= 0:
            self._transition(intent, IntentState.IDLE)
            return True

        self._transition(intent, IntentState.QUOTING)
        task = asyncio.create_task(self._debounced_quote(intent))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _debounced_quote(self, intent: SwapIntent) -> None:
        if self.debounce_seconds:
            await asyncio.sleep(self.debounce_seconds)
        if not self._is_live(intent, IntentState.QUOTING):
            return

        assert intent.token_in is not None and intent.token_out is not None
        try:
            quote = await self.resolver.resolve(
                intent.token_in,
                intent.token_out,
                intent.amount_in,
                unit_price_usd=self.unit_prices or None,
            )
        except Exception as exc:
            if not self._is_live(intent, IntentState.QUOTING):
                log.debug(f"Dropping stale quote failure gen={intent.generation}: {exc}")
                return
            error = classifier.to_swap_error(exc, Phase.QUOTING)
            self._fail(intent, error.kind, error.message)
            return

        if not self._is_live(intent, IntentState.QUOTING):
            log.debug(f"Dropping stale quote gen={intent.generation} current={self.intent.generation}")
            return

        intent.quote = quote
        impact = quote.price_impact_bps
        if impact >= self.price_impact_block_bps:
            intent.warnings.append(f"Price impact {impact / 100:.2f}% exceeds {self.price_impact_block_bps / 100:.2f}%")
        elif impact >= self.price_impact_warn_bps:
            log.warning(f"High price impact gen={intent.generation} pair={intent.pair_label} impact_bps={impact}")
        if not quote.is_tradable:
            intent.warnings.append("Estimated from unit prices; not an on-chain quote")
        self._transition(intent, IntentState.QUOTED)

    async def wait_for_quote(self) -> SwapIntent:
        """Wait until no quote task is pending and return the live intent."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self.intent

    # ------------------------------------------------------- approval/simulation

    async def prepare(self) -> SwapIntent:
        """Quoted -> AwaitingApproval | Simulating -> PreviewReady | Failed."""
        intent = self.intent
        intent.require(IntentState.QUOTED)
        assert intent.quote is not None and intent.token_in is not None

        quote = intent.quote
        if not quote.is_tradable:
            if self.fallback_policy == "block":
                return self._fail(intent, ErrorKind.ROUTE_UNAVAILABLE, "price-based estimate cannot be executed")
            log.warning(f"Preparing price-estimated intent gen={intent.generation} pair={intent.pair_label}")

        try:
            intent.bound = self.slippage.bound(quote, intent.slippage_bps)
            intent.unsigned_tx = self.builder.build(intent)
        except Exception as exc:
            return self._fail_unless_stale(intent, IntentState.QUOTED, exc, Phase.QUOTING)

        try:
            has_balance = await self.approvals.has_sufficient_balance(intent.token_in, self.owner, intent.amount_in)
        except Exception as exc:
            return self._fail_unless_stale(intent, IntentState.QUOTED, exc, Phase.BALANCE)
        if not self._is_live(intent, IntentState.QUOTED):
            return intent
        if not has_balance:
            return self._fail(
                intent, ErrorKind.INSUFFICIENT_BALANCE, f"{intent.token_in.symbol} balance below {intent.amount_in}"
            )

        needs_approval = False
        if not quote.route.is_conversion:
            try:
                needs_approval = await self.approvals.needs_approval(
                    intent.token_in, self.owner, self.spender, intent.amount_in
                )
            except Exception as exc:
                return self._fail_unless_stale(intent, IntentState.QUOTED, exc, Phase.APPROVAL)
            if not self._is_live(intent, IntentState.QUOTED):
                return intent

        if needs_approval:
            intent.approval_tx = self.builder.build_approval(intent.token_in, self.spender, intent.amount_in)
            self._transition(intent, IntentState.AWAITING_APPROVAL)
            return intent
        return await self._simulate(intent, IntentState.QUOTED)

    async def approval_settled(self) -> SwapIntent:
        """Re-check the allowance after an external approval settles."""
        intent = self.intent
        intent.require(IntentState.AWAITING_APPROVAL)
        assert intent.token_in is not None
        try:
            still_needed = await self.approvals.needs_approval(intent.token_in, self.owner, self.spender, intent.amount_in)
        except Exception as exc:
            return self._fail_unless_stale(intent, IntentState.AWAITING_APPROVAL, exc, Phase.APPROVAL)

        if not self._is_live(intent, IntentState.AWAITING_APPROVAL):
            return intent
        if still_needed:
            log.info(f"Allowance still short gen={intent.generation} token={intent.token_in.symbol}")
            return intent
        intent.approval_tx = None
        return await self._simulate(intent, IntentState.AWAITING_APPROVAL)

    async def _simulate(self, intent: SwapIntent, expected: IntentState) -> SwapIntent:
        if not self._is_live(intent, expected):
            return intent
        assert intent.unsigned_tx is not None
        self._transition(intent, IntentState.SIMULATING)
        try:
            report = await self.simulator.simulate(intent.unsigned_tx, self.owner, self.chain_id)
        except Exception as exc:
            return self._fail_unless_stale(intent, IntentState.SIMULATING, exc, Phase.SIMULATION)

        if not self._is_live(intent, IntentState.SIMULATING):
            return intent
        intent.simulation = report
        intent.warnings.extend(w for w in report.warnings if w not in intent.warnings)
        self._transition(intent, IntentState.PREVIEW_READY)
        return intent

    # ---------------------------------------------------------------- execution

    async def confirm(self) -> SwapIntent:
        """Submit the previewed transaction and wait for its receipt."""
        intent = self.intent
        intent.require(IntentState.PREVIEW_READY)
        assert intent.token_in is not None and intent.token_out is not None and intent.unsigned_tx is not None

        with self.guard.hold(self.owner, intent.token_in, intent.token_out):
            self._transition(intent, IntentState.EXECUTING)
            try:
                receipt = await self.executor.execute(intent.unsigned_tx, self.signer)
            except Exception as exc:
                error = classifier.to_swap_error(exc, Phase.EXECUTION)
                log.bind(SWAP_OUTCOME=True).error(
                    f"Swap failed pair={intent.pair_label} amount_in={intent.amount_in} kind={error.kind.value}"
                )
                return self._fail(intent, error.kind, error.message)

            intent.receipt = receipt
            intent.tx_hash = receipt.tx_hash
            log.bind(SWAP_OUTCOME=True).info(
                f"Swap settled pair={intent.pair_label} amount_in={intent.amount_in} "
                f"min_out={intent.bound.min_amount_out if intent.bound else None} "
                f"tx={receipt.tx_hash} explorer={receipt.explorer_url}"
            )
            self._transition(intent, IntentState.SETTLED)
        return intent

    def dismiss(self) -> bool:
        """Cancel the live intent if it has not been submitted."""
        intent = self.intent
        if intent.state not in PRE_EXECUTION_STATES:
            log.debug(f"Dismiss ignored gen={intent.generation} state={intent.state.value}")
            return False
        self._transition(intent, IntentState.CANCELLED)
        return True

    cancel = dismiss

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
