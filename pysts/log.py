

class LogPrinter:
    def __init__(self, compact=False, log_level=0):
        self.compact = compact
        self.log_level = log_level

    def log_status(self, *msg):
        if not self.compact:
            print('\r',  *msg, end='')

    def log_task(self, model_name, configs):
        if not self.compact:
            conf = str(configs[0]) if len(configs) == 1 else configs
            print('Verifying ', model_name, 'using', conf)

    # 
    def log_debug(self, level, *msg):
        if not self.compact and self.log_level >= level:
            print(*msg)

    def log_result(self, model_name, verdict, *msg):
        if not self.compact:
            print('\n', model_name, ': ', verdict, *msg, sep='')
        else:
            print(model_name, ': ', verdict, *msg, sep='')

    def log_intermediate_result(self, model_name, verdict, *msg):
        if not self.compact and self.log_level >= 1:
            print('\n', model_name, ': ', verdict, *msg, sep='')


# global object for printing messages, silent until init_printer is called
printer = LogPrinter(compact=False, log_level=0)

def init_printer(args):
    """
    initialize global printer object from args
    """
    global printer
    printer = LogPrinter(args.compact, args.log_level)
