"""
Central configuration constants for the somewhere simulation.

Defines default values, thresholds, and configuration parameters
used across multiple modules.
"""

# ============================================================================
# Event Window Configuration
# ============================================================================

# Simulation time after which the origin device becomes true
TRUE_TIME = 100

# Simulation time after which the origin device becomes false again
FALSE_TIME = 2 * TRUE_TIME

# Final simulation time
END_TIME = 3 * TRUE_TIME

# Device whose local trigger follows the global event window
ORIGIN_UID = 0


# ============================================================================
# Network Configuration
# ============================================================================

# Communication radius (meters)
COMM_RADIUS = 100.0

# Dimensionality of the deployment area
DIMENSIONS = 2

# Seconds a received message is kept before expiring
RETAIN_TIME = 3.0

# cKDTree build parameters
CKDTREE_LEAFSIZE = 16

# Bytes charged per export for the alignment trace tag
TRACE_TAG_BYTES = 8


# ============================================================================
# Strategy Defaults
# ============================================================================

# Information propagation speed (hops per second)
INFO_SPEED = 70.0

# Number of concurrently alive replicas
REPLICAS = 3

# Rounds a relayed leader may go without a fresher wave before it is dropped
ELECTION_PATIENCE = 3


# ============================================================================
# Scenario Defaults (batch sweep centre point)
# ============================================================================

DEFAULT_HOPS = 10
DEFAULT_DENS = 10
DEFAULT_SPEED = 10
DEFAULT_TVAR = 10
DEFAULT_SEED = 0

# Round period (seconds) and mean of the Weibull round interval
ROUND_PERIOD = 1.0

# Interval between log rows (seconds)
LOG_PERIOD = 1.0


# ============================================================================
# Performance Configuration
# ============================================================================

# Tick timing window for rolling average
TICK_TIME_WINDOW = 100

# Default tick summary interval (print every N ticks)
TICK_SUMMARY_INTERVAL = 100


# ============================================================================
# Strategy Names (report order)
# ============================================================================

ORACLE = 'oracle'
BASELINE = 'baseline'
KNOWLEDGE_FREE = 'kfree'
REPLICATED = 'replicated'
FASTEST = 'fastest'

STRATEGY_NAMES = [ORACLE, BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST]
