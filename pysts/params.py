import argparse


parser = argparse.ArgumentParser(prog='pysts', description='CEGAR model checker for symbolic transition systems')
parser.add_argument('model', help='the model files (.yml) to verify', nargs='*')

parser.add_argument('-o', '--output-directory', help='directory to write results to', type=str, default=None)

parser.add_argument('-c', '--config', default='PredicateAnalysisCEGAR', help='which analysis configuration to use (use --list-configs to get a list of available ones)')
parser.add_argument('--list-configs', help='print the available analysis configurations and exit', action='store_true')

parser.add_argument('--max-iterations', help='maximum number of CEGAR iterations', type=int)
parser.add_argument('--timeout', help='wall-clock limit in seconds', type=float)
parser.add_argument('--waitlist', help='exploration order', choices=['bfs', 'dfs'], default='bfs')
parser.add_argument('--refinement', help='how predicates are extracted from spurious paths', choices=['unsat_core', 'interpolation'], default='unsat_core')
parser.add_argument('--solver', help='pysmt solver name', default='z3')
parser.add_argument('--interpolator', help='pysmt solver used for interpolation', default='msat')
parser.add_argument('--unknown-retries', help='how often a query answered UNKNOWN is retried', type=int, default=1)
parser.add_argument('--max-successors', help='successors enumerated explicitly by the explicit-value analysis', type=int, default=16)

parser.add_argument('--compact', help='print less output (only model and verdict)', action='store_true')
parser.add_argument('--log-level', help='level of debugging output', type=int, default=0)

parser.add_argument('-v', '--version', help='show version', action='version', version='%(prog)s 0.1')
