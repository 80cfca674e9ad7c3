"""
prompt_runtime package.

Hosts the logging setup, the composition root wiring the engine together and
the debug command line.
"""
