"""hostdeploy - deploy a Dockerized repository to one remote host behind Nginx."""

__version__ = "1.0.0"
