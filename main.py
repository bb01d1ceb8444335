import sys

from rich.pretty import pprint

from comproc import *

__prog__ = "comproc-demo"


@caller("greet", Option("name", 1), Option("loud"))
def greet(args):
    message = "hello, %s" % args.get_string("name", "world")
    print(message.upper() if args.has("loud") else message)


@caller(CommandConfig("add", [Option("add", 2), Option("times", 1)]))
def add(args):
    left, right = map(int, args.get_str_vec("add"))
    return CommandStatus("add", Status.OK, str((left + right) * args.get_uint("times", 1)))


class Inventory:
    def __init__(self):
        self.items = []

    def store(self, args):
        self.items.extend(args.get_str_vec("store"))

    def show(self, args):
        pprint(self.items)


inventory = Inventory()

commander = Commander(handler=ConsoleStatusHandler(verbose=True, colorful=True))
commander.append_command(greet)
commander.append_command(add)
commander.append_command(CommandCaller(inventory, "store", CommandConfig("store", [Option("store", 1, variadic=True)])))
commander.append_command(CommandCaller(inventory, Inventory.show, CommandConfig("show")))


if __name__ == '__main__':
    # python main.py greet name Ada loud add 2 3 times 4 store apple pear show frobnicate
    statuses = commander.run(sys.argv[1:])
    sys.exit(1 if any(not status.ok for status in statuses) else 0)
