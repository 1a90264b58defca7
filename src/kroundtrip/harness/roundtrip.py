"""Round-trip harness: provision, produce, consume, verify, tear down."""

from __future__ import annotations

import asyncio
import functools
import logging
import signal
import threading
import time
import uuid
from datetime import datetime, timezone

from rich.console import Console

from kroundtrip.errors import HarnessError
from kroundtrip.generators.key import create_key_generator, new_correlation_id
from kroundtrip.generators.order import OrderGenerator
from kroundtrip.harness.checks import DecodedMessage, run_checks
from kroundtrip.harness.context import HarnessContext, WorkerContext
from kroundtrip.harness.coordinator import SetupBarrier
from kroundtrip.harness.result import RunResult, WorkerOutcome
from kroundtrip.harness.state import HarnessState, transition
from kroundtrip.kafka.factory import ClientFactory
from kroundtrip.models.config import RunConfig
from kroundtrip.models.message import Message, ProduceBatch
from kroundtrip.models.payload import (
    key_from_payload,
    key_payload,
    order_from_payload,
    order_payload,
)
from kroundtrip.models.schema import SchemaRole
from kroundtrip.registry.catalog import SchemaCatalog
from kroundtrip.runtime import get_executor, shutdown_executor

console = Console()
logger = logging.getLogger(__name__)

ORIGIN = "kroundtrip"


def default_catalog(config: RunConfig) -> SchemaCatalog:
    if config.value_schema_path is None:
        return SchemaCatalog.default()
    return SchemaCatalog.from_files(config.key_schema_path, config.value_schema_path)


class RoundTripHarness:
    """Runs every worker's produce-then-consume cycle against one topic.

    A single coordinator creates the topic and registers schemas behind a
    ``SetupBarrier``; workers wait on it, then produce, consume and verify
    with their own producer and consumer. Teardown runs once every worker
    has finished, on every exit path.
    """

    def __init__(
        self,
        config: RunConfig,
        factory: ClientFactory | None = None,
        catalog: SchemaCatalog | None = None,
        order_generator: OrderGenerator | None = None,
        run_id: str | None = None,
    ):
        self.config = config
        self.factory = factory or ClientFactory(config)
        self.catalog = catalog or default_catalog(config)
        self.run_id = run_id or uuid.uuid4().hex[:8]
        self.state = HarnessState.IDLE
        self.result = RunResult(run_id=self.run_id)

        self._orders = order_generator or OrderGenerator()
        self._keys = create_key_generator(config.key_strategy)
        self._barrier: SetupBarrier[HarnessContext] = SetupBarrier()
        self._context: HarnessContext | None = None
        self._stop_event = threading.Event()

    def _advance(self, target: HarnessState) -> None:
        self.state = transition(self.state, target)
        self.result.state = self.state

    async def _call(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            get_executor(self.config.workers + 1), functools.partial(fn, *args, **kwargs)
        )

    def group_id(self, index: int) -> str:
        return f"{self.config.consumer.group_prefix}-{self.run_id}-{index}"

    def request_stop(self) -> None:
        """Ask workers to stop after their in-flight batch."""
        self._stop_event.set()

    @property
    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    async def setup(self) -> HarnessContext:
        """Create the topic and register every schema. Runs exactly once."""
        topic = self.config.topic
        # Values are mandatory; keys are optional.
        self.catalog.definition(SchemaRole.VALUE)
        self._context = ctx = await self._call(
            HarnessContext.open, self.config, self.factory, self.catalog
        )

        console.print(
            f"[dim]Creating topic: {topic.name} ({topic.partitions} partitions, "
            f"{topic.compression})[/dim]"
        )
        await self._call(ctx.admin.create_if_not_exists, topic)
        self._advance(HarnessState.TOPIC_READY)

        for role in self.catalog.roles():
            definition = self.catalog.definition(role)
            subject = self.catalog.subject_name(topic.name, role, self.config.subject_strategy)
            console.print(f"[dim]Registering {role.value} schema under '{subject}'[/dim]")
            ctx.handles[role] = await self._call(
                ctx.registry.register, subject, definition.schema_str, definition.schema_type
            )
        self._advance(HarnessState.SCHEMAS_REGISTERED)
        return ctx

    async def teardown(self) -> None:
        ctx = self._context
        try:
            if ctx is not None:
                topic_created = self.state != HarnessState.IDLE
                try:
                    if topic_created and self.config.delete_topic_on_teardown:
                        await self._call(ctx.admin.delete_all, self.config.topic.name)
                        console.print(f"[dim]Topic {self.config.topic.name} deleted[/dim]")
                except Exception as e:
                    logger.warning("Teardown could not delete topic: %s", e)
                    self.result.add_teardown_error(f"delete topic: {e}")
                finally:
                    for error in ctx.close():
                        self.result.add_teardown_error(error)
        finally:
            self._context = None
            self._advance(HarnessState.TORN_DOWN)
            shutdown_executor()

    def _build_message(self, ctx: HarnessContext, index: int) -> Message:
        correlation_id = new_correlation_id()
        value_handle = ctx.handle(SchemaRole.VALUE)
        order = self._orders.generate(index)
        value = ctx.codec.encode(order_payload(order, value_handle.schema_type), value_handle)

        key = None
        key_handle = ctx.handles.get(SchemaRole.KEY)
        if key_handle is not None:
            key_text = self._keys.generate(index, correlation_id)
            key = ctx.codec.encode(
                key_payload(key_text, key_handle.schema_type), key_handle, SchemaRole.KEY
            )

        return Message(
            key=key,
            value=value,
            headers={
                "correlationId": correlation_id,
                "origin": ORIGIN,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    def _decode(self, ctx: HarnessContext, message: Message) -> DecodedMessage:
        value_handle = ctx.handle(SchemaRole.VALUE)
        order = order_from_payload(ctx.codec.decode(message.value, value_handle))
        key = None
        key_handle = ctx.handles.get(SchemaRole.KEY)
        if key_handle is not None:
            key = key_from_payload(ctx.codec.decode(message.key, key_handle, SchemaRole.KEY))
        return DecodedMessage(key=key, order=order)

    def _produce(self, ctx: HarnessContext, worker: WorkerContext, outcome: WorkerOutcome) -> bool:
        """Produce phase; returns False if a stop was requested midway."""
        count = self.config.messages_per_worker
        batch_size = self.config.producer.batch_size
        outcome.advance(HarnessState.PRODUCING)

        start = time.perf_counter()
        batch: ProduceBatch = []
        for index in range(count):
            if self.should_stop:
                return False
            batch.append(self._build_message(ctx, index))
            if len(batch) >= batch_size:
                worker.producer.send(batch)
                outcome.messages_produced += len(batch)
                batch = []
        if batch:
            worker.producer.send(batch)
            outcome.messages_produced += len(batch)

        elapsed_ms = (time.perf_counter() - start) * 1000
        outcome.produce_duration_ms = elapsed_ms
        self.result.produce_duration.add(elapsed_ms)
        return True

    def _worker_cycle(
        self, ctx: HarnessContext, worker: WorkerContext, outcome: WorkerOutcome
    ) -> None:
        if not self._produce(ctx, worker, outcome):
            outcome.error = "stopped before consuming"
            return

        outcome.advance(HarnessState.CONSUMING)
        count = self.config.messages_per_worker
        consumed = worker.consumer.consume(
            limit=count, timeout=self.config.consumer.timeout_seconds
        )
        outcome.messages_consumed = len(consumed)

        decoded = [self._decode(ctx, message) for message in consumed]
        outcome.advance(HarnessState.VERIFIED)
        outcome.checks = run_checks(
            decoded,
            expected=count,
            key_strategy=self.config.key_strategy,
            check_keys=SchemaRole.KEY in ctx.handles,
        )
        for name, ok in outcome.checks.items():
            self.result.record_check(name, ok)

    async def _run_worker(self, index: int) -> WorkerOutcome:
        group_id = self.group_id(index)
        try:
            ctx = await self._barrier.wait()
        except Exception:
            return WorkerOutcome(
                index=index,
                group_id=group_id,
                state=HarnessState.TORN_DOWN,
                error="setup did not complete",
            )

        outcome = WorkerOutcome(index=index, group_id=group_id)
        worker: WorkerContext | None = None
        try:
            worker = await self._call(WorkerContext.open, self.factory, index, group_id)
            await self._call(self._worker_cycle, ctx, worker, outcome)
        except HarnessError as e:
            logger.error("Worker %d aborted in %s: %s", index, outcome.state.name, e)
            outcome.error = str(e)
            self.result.add_error(f"worker {index}: {e}")
        except Exception as e:
            logger.exception(f"Worker {index} failed: {e}")
            outcome.error = str(e)
            self.result.add_error(f"worker {index}: {e}")
        finally:
            if worker is not None:
                for error in await self._call(worker.close):
                    self.result.add_teardown_error(error)
            outcome.advance(HarnessState.TORN_DOWN)
        return outcome

    async def run(self) -> RunResult:
        """Run setup, every worker and teardown once."""
        if self.state != HarnessState.IDLE:
            raise HarnessError("A harness runs exactly once")

        start_time = time.time()
        console.print(
            f"[bold blue]Run {self.run_id}: {self.config.workers} worker(s) x "
            f"{self.config.messages_per_worker} message(s) on '{self.config.topic.name}'[/]"
        )
        try:
            workers = [
                asyncio.create_task(self._run_worker(i)) for i in range(self.config.workers)
            ]
            try:
                await self._barrier.run(self.setup)
            except Exception as e:
                logger.error("Setup failed, aborting run: %s", e)
                self.result.fatal_error = f"Setup failed: {e}"
            self.result.workers = list(await asyncio.gather(*workers))
        finally:
            await self.teardown()
            self.result.duration_seconds = time.time() - start_time
        return self.result

    async def execute(self) -> RunResult:
        """Run with SIGINT/SIGTERM requesting a graceful stop."""
        loop = asyncio.get_running_loop()

        def signal_handler():
            console.print("\n[yellow]Shutting down gracefully...[/yellow]")
            self.request_stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)
        try:
            return await self.run()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
