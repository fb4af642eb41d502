"""shinobi-resolver — layered configuration resolution for platform components."""

__version__ = "0.4.0"
