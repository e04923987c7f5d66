"""Entry point wrapper for ``python -m lick_generator``.

When the package is executed as a module the code here simply forwards
execution to :func:`lick_generator.main`, so ``python -m lick_generator``
and the installed ``lick-generator`` console script behave identically.

Example
-------
The following invocation writes a two bar lick to a MIDI file::

    python -m lick_generator --progression "Dm7 | G7" --seed 3 --output ii-v.mid
"""

from . import main

if __name__ == "__main__":
    main()
