import numpy as np

from mmc_driver.domain_models.results import Decision


class AcceptanceEngine:
    """
    Metropolis criterion: accept when a uniform sample in [0, 1) is strictly
    below exp(-(E2 - E1) / (kB * T)). The probability is not clamped, so any
    downhill move is accepted.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()

    def draw_sample(self) -> float:
        return float(self.rng.random())

    def decide(
        self,
        e1: float,
        e2: float,
        temperature: float,
        kb: float,
        sample: float | None = None,
    ) -> Decision:
        """
        Args:
            e1: Energy of the accepted state (eV).
            e2: Energy of the trial (eV).
            temperature: Temperature (K).
            kb: Boltzmann constant (eV/K).
            sample: Uniform draw to use instead of a fresh one.
        """
        thermal = kb * temperature
        if thermal <= 0:
            msg = f"kB * T must be positive, got {thermal}"
            raise ValueError(msg)

        delta_e = e2 - e1
        exponent = -delta_e / thermal
        # Large downhill moves overflow to inf and underflow to 0.0 uphill, both valid.
        with np.errstate(over="ignore", under="ignore"):
            probability = float(np.exp(exponent))

        if sample is None:
            sample = self.draw_sample()

        return Decision(
            accept=sample < probability,
            delta_e=delta_e,
            exponent=exponent,
            probability=probability,
            sample=sample,
        )
