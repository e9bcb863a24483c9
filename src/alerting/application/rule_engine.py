"""Batch evaluation of alert configurations against one evaluation snapshot."""

import asyncio
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from src.alerting.application.alert_builder import AlertInstanceBuilder
from src.alerting.application.collaborators import collaborator_timeout
from src.alerting.application.rule_evaluator import ConfigurationEvaluator
from src.alerting.domain.models import AlertConfiguration, AlertInstance, EvaluationContext
from src.alerting.infrastructure.logging import LoggingContext
from src.config import EngineConfig


@dataclass
class BatchState:
    """Coordination shared by the configuration tasks of one batch."""

    semaphore: asyncio.Semaphore
    locks: defaultdict[tuple[str, str], asyncio.Lock] = field(default_factory=lambda: defaultdict(asyncio.Lock))
    # (configuration_id, rule_id) -> instance created earlier in this batch
    created: dict[tuple[str, str], AlertInstance] = field(default_factory=dict)


class RuleEngine:
    """
    Evaluates a batch of alert configurations and returns the resulting alert instances.

    Configurations are processed in parallel up to ``max_concurrent_configurations``;
    a configuration that fails or times out is logged and contributes no instances,
    without affecting the rest of the batch. Each configuration collects its
    instances in its own list, so the output order follows the input order.
    Notifications are dispatched in the background and never hold a concurrency slot.
    """

    def __init__(
        self,
        configuration_evaluator: ConfigurationEvaluator,
        alert_builder: AlertInstanceBuilder,
        config: EngineConfig | None = None,
    ):
        self.configuration_evaluator = configuration_evaluator
        self.alert_builder = alert_builder
        self.config = config or EngineConfig()

    async def evaluate(
        self,
        configurations: Iterable[AlertConfiguration],
        context: EvaluationContext,
        timeout: float | None = None,
    ) -> list[AlertInstance]:
        """
        Evaluate all active configurations against the context.

        Args:
            configurations: Configurations to evaluate; inactive ones are skipped
            context: Immutable evaluation snapshot shared by every configuration
            timeout: Optional deadline in seconds for the whole batch. When it
                expires, unfinished configurations are cancelled and the
                instances already finalized are returned.

        Returns:
            Alert instances in configuration order, then rule order
        """
        active = []
        for configuration in configurations:
            if configuration.is_active:
                active.append(configuration)
            else:
                logger.debug(f"Skipping configuration {configuration.id} ({configuration.status})")

        if not active:
            return []

        logger.info(f"Evaluating {len(active)} configurations at {context.current_time.isoformat()}")

        batch = BatchState(semaphore=asyncio.Semaphore(self.config.max_concurrent_configurations))
        buckets: list[list[AlertInstance]] = [[] for _ in active]

        tasks = [
            asyncio.create_task(self._run_configuration(configuration, context, bucket, batch))
            for configuration, bucket in zip(active, buckets)
        ]

        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        if pending:
            logger.warning(f"Batch deadline of {timeout}s reached; cancelling {len(pending)} configurations")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if self.config.await_notifications:
            await self.drain_notifications()

        instances = [instance for bucket in buckets for instance in bucket]
        logger.info(f"✓ Batch complete: {len(instances)} alert instances")
        return instances

    def evaluate_sync(
        self,
        configurations: Iterable[AlertConfiguration],
        context: EvaluationContext,
        timeout: float | None = None,
    ) -> list[AlertInstance]:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self._evaluate_and_drain(list(configurations), context, timeout))

    async def drain_notifications(self) -> None:
        """Wait for background notification dispatches to finish."""
        pending = list(self.alert_builder.pending_dispatches)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _evaluate_and_drain(
        self, configurations: list[AlertConfiguration], context: EvaluationContext, timeout: float | None
    ) -> list[AlertInstance]:
        instances = await self.evaluate(configurations, context, timeout)
        # the loop closes on return, so background dispatches must finish first
        await self.drain_notifications()
        return instances

    async def _run_configuration(
        self,
        configuration: AlertConfiguration,
        context: EvaluationContext,
        bucket: list[AlertInstance],
        batch: BatchState,
    ) -> None:
        async with batch.semaphore:
            with LoggingContext(configuration_id=configuration.id):
                try:
                    await asyncio.wait_for(
                        self._evaluate_configuration(configuration, context, bucket, batch),
                        timeout=self.config.configuration_timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logger.error(
                        f"Configuration {configuration.id} timed out after "
                        f"{self.config.configuration_timeout_seconds}s"
                    )
                except Exception as e:
                    logger.error(f"Error evaluating configuration {configuration.id}: {e}")

    async def _evaluate_configuration(
        self,
        configuration: AlertConfiguration,
        context: EvaluationContext,
        bucket: list[AlertInstance],
        batch: BatchState,
    ) -> None:
        results = await self.configuration_evaluator.evaluate(configuration, context)
        rules = {rule.id: rule for rule in configuration.rules}
        created: list[AlertInstance] = []

        for result in results:
            if not result.triggered:
                continue
            rule = rules[result.rule_id]
            key = (configuration.id, rule.id)

            with LoggingContext(rule_id=rule.id):
                try:
                    async with batch.locks[key]:
                        if rule.suppress_duplicates and key in batch.created:
                            logger.info(
                                f"Suppressed duplicate for rule {rule.id}; "
                                f"alert {batch.created[key].id} already raised in this batch"
                            )
                            continue

                        instance, is_new = await self.alert_builder.build(
                            configuration, rule, result, context, collaborator_timeout(rule, self.config)
                        )
                        bucket.append(instance)
                        if is_new:
                            batch.created[key] = instance
                except Exception as e:
                    logger.error(f"Error building alert for rule {rule.id}: {e}")
                    continue

            if is_new:
                created.append(instance)
                self.alert_builder.schedule_dispatch(configuration, instance)

        for instance in created:
            instance.context.related_alerts = [other.id for other in created if other.id != instance.id]
