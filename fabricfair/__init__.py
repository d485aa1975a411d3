"""FabricFair: bilingual B2B sample-request intake for trade fair exhibitors."""

__version__ = "0.1.0"
