"""Search orchestration, presentation and the command line front end."""
