"""
bondcurve: bonding-curve launch AMM engine.

Pure, integer-only pricing and fee kernels (`bondcurve.core`), per-curve
state tables and the transfer ledger boundary (`bondcurve.state`), and the
imperative shell that executes trades atomically (`bondcurve.integration`).
"""

__version__ = "0.1.0"
