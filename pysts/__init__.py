from pysts.analyses.CEGAR import CEGARDriver, check
from pysts.frontend import parse_sts, load_sts
from pysts.sts import STS, Trace
from pysts.task import Task, Result
from pysts.verdict import Verdict
