"""StartForge: Feature extraction and final calls for bacterial start codons.

StartForge prepares the data for a machine-learned start-codon classifier.
It scans contigs for start codons inside the open reading frames defined by
an upstream start/stop predictor, describes each candidate with a feature
vector (sequence composition, ribosome binding site, promoter box and
predictor confidences), and, once the classifier has scored the candidates,
keeps the single best start of every ORF.

Example:
    >>> import startforge
    >>> startforge.__version__
    '0.1.0'

Modules:
    io: FASTA, GFF3, role map and tabular readers; balanced output
    core: ORF indexing, feature extraction, feature tables, final calls
    utils: Sequence helpers, locations and logging
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
