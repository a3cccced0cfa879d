from pysts.analyses.PredAbsCPA import PredAbsCPA, PredAbsState, PredAbsPrecision, PredAbsTransferRelation
from pysts.analyses.ExplCPA import ExplCPA, ExplState, ExplPrecision, ExplTransferRelation
from pysts.analyses.ARGCPA import ARG, ARGNode, GraphableARGNode

from pysts.cpa import CPA, DomainKind
from pysts.smt import SmtOracle


def make_cpa(kind, oracle : SmtOracle, max_successors : int = 16) -> CPA:
    """ the abstract domain selected by `kind` """
    match DomainKind.from_name(kind):
        case DomainKind.PRED:
            return PredAbsCPA(oracle)
        case DomainKind.EXPL:
            return ExplCPA(oracle, max_successors)
