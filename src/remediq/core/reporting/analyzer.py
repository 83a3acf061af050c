import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from remediq.core.entities.engine import TrialRecord
from remediq.core.entities.report import (
    ActionStats,
    AnalysisReport,
    AnalysisSummary,
    Finding,
    NextStep,
    QValueSummary,
    RewardBucket,
    RewardDistribution,
    RollingPoint,
)
from remediq.core.errors import ConfigurationError
from remediq.utils.io_utils import atomic_write_text


# Reward range labels from worst to best, split at REWARD_EDGES
REWARD_RANGES = ("below -5", "-5 to 0", "0 to 4", "4 to 8", "8 and above")
REWARD_EDGES = (-5.0, 0.0, 4.0, 8.0)


class TrialAnalyzer:
    """
    Post-hoc aggregation of a run's trial log.

    Produces:
      - Overall totals and success rate.
      - Per-action totals, successes and average reward.
      - A rolling success-rate series over a fixed window.
      - A reward distribution and a summary of the learned Q-values.
      - Derived diagnostics: improvement rate, convergence point, issues,
        recommendations, insights and next steps.

    The report is a regenerable artifact; nothing in it flows back into learning.
    """

    def __init__(self, records: Sequence[TrialRecord], window: int = 5):
        if window < 1:
            raise ConfigurationError(f"Rolling window must be >= 1, got {window}")
        self.records = list(records)
        self.window = window
        self.logger = logging.getLogger("REMEDIQ-Analyzer")

    def summary(self) -> AnalysisSummary:
        total = len(self.records)
        successes = sum(1 for r in self.records if r.success)
        return AnalysisSummary(
            total_trials=total,
            successful_trials=successes,
            success_rate=round(successes / total * 100, 2) if total else 0.0,
            average_reward=float(np.mean([r.reward for r in self.records])) if total else 0.0,
            average_duration_ms=float(np.mean([r.duration_ms for r in self.records])) if total else 0.0,
        )

    def action_stats(self) -> Dict[str, ActionStats]:
        stats: Dict[str, ActionStats] = {}
        for record in self.records:
            entry = stats.setdefault(record.action, ActionStats())
            entry.total += 1
            entry.successes += int(record.success)
            entry.total_reward += record.reward
        return stats

    def rolling_success_rate(self) -> List[RollingPoint]:
        if len(self.records) < self.window:
            return []
        outcomes = np.array([1.0 if r.success else 0.0 for r in self.records])
        rates = self._rolling_mean(outcomes) * 100
        return [
            RollingPoint(trial=self.records[i + self.window - 1].trial, success_rate=round(float(rate), 1))
            for i, rate in enumerate(rates)
        ]

    def improvement_rate(self) -> Optional[float]:
        """Percent change of the mean reward from the first half of the run to the second."""
        if len(self.records) < 10:
            return None
        half = len(self.records) // 2
        first = float(np.mean([r.reward for r in self.records[:half]]))
        second = float(np.mean([r.reward for r in self.records[half:]]))
        if first == 0:
            return None
        return round((second - first) / abs(first) * 100, 1)

    def convergence_point(self, threshold: float = 5.0) -> Optional[int]:
        """Trial number at which the rolling mean reward first exceeds `threshold`."""
        if len(self.records) < 10:
            return None
        means = self._rolling_mean(np.array([r.reward for r in self.records]))
        above = np.nonzero(means > threshold)[0]
        if above.size == 0:
            return None
        return self.records[int(above[0]) + self.window - 1].trial

    def issues(self, q_table: Optional[Mapping[str, Mapping[str, float]]] = None) -> List[Finding]:
        issues: List[Finding] = []
        if not self.records:
            return issues

        if self.summary().success_rate < 50:
            issues.append(Finding(
                type="low_success_rate",
                severity="high",
                description="Success rate is below 50%, indicating poor learning",
                suggestion="Review reward function and action space",
            ))

        if q_table is not None and len(q_table) < 10:
            issues.append(Finding(
                type="small_qtable",
                severity="medium",
                description="Q-table has very few states, may indicate limited exploration",
                suggestion="Increase exploration rate or add more diverse actions",
            ))

        recent = self.records[-10:]
        if sum(1 for r in recent if r.success) / len(recent) < 0.3:
            issues.append(Finding(
                type="recent_poor_performance",
                severity="high",
                description="Recent trials show poor performance",
                suggestion="Agent may be stuck in a local optimum, consider resetting the Q-table",
            ))

        return issues

    def recommendations(self, final_epsilon: Optional[float] = None) -> List[Finding]:
        recommendations: List[Finding] = []

        if self.records and self.summary().success_rate < 60:
            recommendations.append(Finding(
                type="reward_function",
                severity="high",
                description="Optimize reward function to better guide learning",
                suggestion="Review and adjust reward weights for different action categories",
            ))

        if final_epsilon is not None and final_epsilon > 0.1:
            recommendations.append(Finding(
                type="exploration_rate",
                severity="medium",
                description="Exploration rate is still high at the end of the run",
                suggestion="Decrease epsilon_decay or min_epsilon for better exploitation",
            ))

        return recommendations

    def insights(self) -> List[str]:
        insights: List[str] = []
        stats = self.action_stats()
        if stats:
            best_action, best = max(stats.items(), key=lambda item: item[1].success_rate)
            insights.append(f"Best performing action: {best_action} ({best.success_rate:.1f}% success)")

            avg_reward = self.summary().average_reward
            trend = "positive" if avg_reward > 0 else "negative"
            insights.append(f"Average reward: {avg_reward:.2f} ({trend} learning)")
        return insights

    def reward_distribution(self) -> Optional[RewardDistribution]:
        """Counts of trial rewards per range, from best to worst."""
        if not self.records:
            return None
        rewards = np.array([r.reward for r in self.records])
        # np.digitize puts x in bucket i when edges[i-1] <= x < edges[i]
        counts = np.bincount(np.digitize(rewards, REWARD_EDGES), minlength=len(REWARD_RANGES))
        buckets = [
            RewardBucket(range=label, count=int(count), percentage=round(count / rewards.size * 100, 1))
            for label, count in zip(REWARD_RANGES, counts)
        ]
        return RewardDistribution(
            buckets=buckets[::-1],
            min_reward=float(rewards.min()),
            max_reward=float(rewards.max()),
        )

    @staticmethod
    def q_value_summary(q_table: Optional[Mapping[str, Mapping[str, float]]]) -> Optional[QValueSummary]:
        """Value range of the learned table and the greedy action of every state."""
        rows = {state: row for state, row in (q_table or {}).items() if row}
        if not rows:
            return None
        values = [value for row in rows.values() for value in row.values()]
        return QValueSummary(
            states=len(rows),
            actions=len({action for row in rows.values() for action in row}),
            min_q=min(values),
            max_q=max(values),
            greedy_actions={state: max(row, key=row.get) for state, row in rows.items()},
        )

    def next_steps(self) -> List[NextStep]:
        actions = [("Review the issues and recommendations in this report", "high")]
        if self.summary().success_rate < 70:
            actions.append(("Run additional trials with tuned engine parameters", "high"))
        actions.append(("Apply the best-performing actions to the project", "medium"))
        actions.append(("Schedule recurring runs to keep the Q-table current", "medium"))
        return [
            NextStep(step=i, action=action, priority=priority)
            for i, (action, priority) in enumerate(actions, start=1)
        ]

    def build_report(
        self,
        q_table: Optional[Mapping[str, Mapping[str, float]]] = None,
        final_epsilon: Optional[float] = None,
        goal_reached: bool = False,
        parameters: Optional[Dict[str, Any]] = None,
        logs: Optional[List[Dict[str, Any]]] = None,
    ) -> AnalysisReport:
        stats = self.action_stats()
        return AnalysisReport(
            summary=self.summary(),
            parameters=parameters or {},
            final_epsilon=final_epsilon,
            goal_reached=goal_reached,
            action_stats={
                name: {
                    "total": s.total,
                    "successes": s.successes,
                    "success_rate": round(s.success_rate, 1),
                    "total_reward": s.total_reward,
                    "avg_reward": round(s.avg_reward, 2),
                }
                for name, s in stats.items()
            },
            rolling_window=self.window,
            rolling_success_rate=self.rolling_success_rate(),
            improvement_rate=self.improvement_rate(),
            convergence_trial=self.convergence_point(),
            q_table_states=len(q_table) if q_table is not None else 0,
            q_table_entries=sum(len(row) for row in q_table.values()) if q_table is not None else 0,
            reward_distribution=self.reward_distribution(),
            q_values=self.q_value_summary(q_table),
            issues=self.issues(q_table),
            recommendations=self.recommendations(final_epsilon),
            insights=self.insights(),
            next_steps=self.next_steps(),
            logs=logs or [],
            trial_results=self.records,
        )

    def log_summary(self, report: AnalysisReport) -> None:
        s = report.summary
        self.logger.info("TRIAL ANALYSIS")
        self.logger.info(
            "Total Trials: %d, Successful: %d, Success Rate: %.2f%%",
            s.total_trials, s.successful_trials, s.success_rate,
        )
        for action, stats in report.action_stats.items():
            self.logger.info(
                "%s: %.1f%% success, avg reward: %.2f",
                action, stats["success_rate"], stats["avg_reward"],
            )
        for finding in report.issues:
            self.logger.warning("Issue [%s]: %s", finding.severity, finding.description)

    @staticmethod
    def save_report(report: AnalysisReport, output_path: str) -> None:
        atomic_write_text(output_path, report.model_dump_json(indent=2))

    def _rolling_mean(self, values: np.ndarray) -> np.ndarray:
        return np.convolve(values, np.ones(self.window), mode="valid") / self.window
