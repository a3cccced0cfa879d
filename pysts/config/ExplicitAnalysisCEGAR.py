from pysts.analyses.CEGAR import CEGARDriver
from pysts.cpa import DomainKind
from pysts.sts import STS
from pysts.task import Task, Result


# explicit values only terminate on systems with finitely many reachable valuations
def get_algorithm(sts : STS, task : Task, result : Result):
    return CEGARDriver(sts, task, result, domain=DomainKind.EXPL)
