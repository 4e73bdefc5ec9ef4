"""Headless-safe error curve plotting."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Sequence


class ErrorPlot:
    """Collect per-epoch errors and save them as a PNG line chart."""

    def __init__(
        self,
        path: str | Path,
        *,
        epochs: int,
        learning_rate: float,
        batch_size: int,
        hidden_layers: Sequence[int],
    ) -> None:
        self.path = Path(path).expanduser()
        self.epochs = epochs
        self.learning_rate = learning_rate
        self.batch_size = batch_size
        self.hidden_layers = list(hidden_layers)
        self.train_errors: List[float] = []
        self.test_errors: List[float] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.train_errors.append(float(metrics["train_error"]))
        if "test_error" in metrics:
            self.test_errors.append(float(metrics["test_error"]))

    __call__ = on_epoch

    def title(self) -> str:
        parts = []
        if self.test_errors:
            parts.append(f"Test err={self.test_errors[-1]:.2f}")
        if self.train_errors:
            parts.append(f"Training err={self.train_errors[-1]:.2f}")
        parts.extend(
            [
                f"{self.epochs} epochs",
                f"Learning rate={self.learning_rate}",
                f"Batch size={self.batch_size}",
                f"{len(self.hidden_layers)} hidden layers",
            ]
        )
        return " | ".join(parts)

    def close(self) -> Path | None:
        """Write the figure; returns ``None`` when nothing was recorded."""

        if not self.train_errors:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(range(1, len(self.train_errors) + 1), self.train_errors, label="Training Error")
        if self.test_errors:
            ax.plot(range(1, len(self.test_errors) + 1), self.test_errors, label="Test Error")
        ax.set_xlabel("SGD epochs")
        ax.set_ylabel("Error")
        ax.set_title(self.title(), fontsize=8)
        ax.legend()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(self.path)
        plt.close(fig)
        return self.path


__all__ = ["ErrorPlot"]
