"""
mmc-driver: Metropolis Monte Carlo site-swap sampling on top of an external
ab-initio solver (VASP by default).

The driver swaps one site of species A with one site of species B in the
working POSCAR, lets the solver relax and evaluate the candidate, and accepts
or rejects the move with the Metropolis criterion. Every trial is archived
under ``dataset/N``; every accepted move under ``trajectory/N``.

Usage
-----
    $ mmc init mmc.yaml
    $ mmc run mmc.yaml

or programmatically:

    from mmc_driver import MMCDriver, load_config

    driver = MMCDriver.from_config(load_config(Path("mmc.yaml")))
    summary = driver.run()
"""

from mmc_driver.config.loader import load_config
from mmc_driver.core.driver import MMCDriver
from mmc_driver.domain_models.config import MMCConfig

__all__ = ["MMCConfig", "MMCDriver", "load_config"]
