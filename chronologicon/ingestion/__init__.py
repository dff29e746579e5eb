"""Background ingestion: job submission, the Dramatiq actor and job logging.

Import :mod:`chronologicon.ingestion.actor` explicitly; importing it binds
the actor to a Dramatiq broker.
"""
