# main.py

# The root entry point only directs traffic; all application logic lives in
# the timekeeper package. Running `python main.py` is the same as running
# the installed `timekeeper` command.
from timekeeper.main import main

if __name__ == '__main__':
    main()
