"""artiflow - typed, incrementally streamed artifacts for agent pipelines."""

__version__ = "0.1.0"
