"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the Fast Purge API, edgerc
credential files, configuration sources and the console) by implementing the
interfaces defined in the domain layer.
"""
