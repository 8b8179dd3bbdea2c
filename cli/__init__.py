"""Command line entry points: run the readout, serve its status API, simulate sensor nodes."""
