"""
Somewhere: spatiotemporal "somewhere" operator strategies

A deterministic, headless simulator of mobile device networks comparing
five ways of computing "is the event true somewhere in the network?":
an oracle, a hop-gradient baseline, a knowledge-free election, replicated
past-eventually operators and full-state gossip.

Each device round records value, error against the oracle and message
size per strategy; the simulation logs their network means every second.
"""

__version__ = "0.1.0"
