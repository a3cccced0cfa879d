from pysts.analyses.CEGAR import CEGARDriver
from pysts.cpa import DomainKind
from pysts.sts import STS
from pysts.task import Task, Result


def get_algorithm(sts : STS, task : Task, result : Result):
    return CEGARDriver(sts, task, result, domain=DomainKind.PRED)
