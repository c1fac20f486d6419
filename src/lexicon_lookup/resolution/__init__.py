"""
Resolution layer: the lookup cascade and its decision policies.

Key components:
- ResolutionOrchestrator: staged cascade over cache, lexicon and resolvers
- ConsensusBuilder: reliability-weighted merge of candidate translations
- DisambiguationPolicy: flags near-ties and writes clarifying questions
- SentenceDecomposer: token-by-token translation of phrases
"""
from .consensus import ConsensusBuilder, ConsensusResult, SOURCE_RELIABILITY
from .disambiguation import DisambiguationPolicy, PREFERRED_SENSES
from .decomposer import Composition, SentenceDecomposer
from .orchestrator import ResolutionOrchestrator, ResolutionStage

__all__ = [
    "ConsensusBuilder",
    "ConsensusResult",
    "SOURCE_RELIABILITY",
    "DisambiguationPolicy",
    "PREFERRED_SENSES",
    "Composition",
    "SentenceDecomposer",
    "ResolutionOrchestrator",
    "ResolutionStage",
]
