#!/usr/bin/env python3
"""
Letter Wall - 26 LED message display

Compose a message, preview it on the simulated strip (one-shot or looping
demo) and send it to the message server the wall polls.
"""

import argparse

from letterwall.settings import load_settings
from letterwall.controllers import WallController


HELP = """
==================================================
  LETTER WALL
==================================================
  s - Status          h - Help            q - Quit

  PREVIEW:
  p <text> - Play once       l <text> - Loop on/off
  x        - Stop            r        - Reset strip
  d        - Random demo

  MESSAGE SERVER:
  n <text> - Send message    f - Fetch & preview
  a - Auto-refresh on/off    y - Simulate device polling
  k - Check connection

  HISTORY:
  m - Recent messages        c - Clear history
=================================================="""


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Letter wall LED simulator")
    parser.add_argument("--settings", default="settings.json", help="path to settings JSON")
    args = parser.parse_args(argv)

    print("\n" + "=" * 50)
    print("  LETTER WALL - Controller")
    print("=" * 50 + "\n")

    settings = load_settings(args.settings)
    controller = WallController(settings)

    controller.start()
    print("\n[SYSTEM] Running...  (press 'h' for help)\n")
    print(HELP)

    running = True
    while running:
        try:
            cmd = input("\n> ").strip()

            if not cmd:
                continue
            elif cmd.lower() == 'h':
                print(HELP)
            elif cmd.lower() == 'q':
                running = False
                print("\nExiting...")
            else:
                result = controller.handle_command(cmd)
                if result is None:
                    print("Unknown command. Press 'h' for help.")

        except (KeyboardInterrupt, EOFError):
            running = False
            print("\n\nExiting...")
        except Exception as e:
            print(f"[ERROR] {e}")

    controller.cleanup()
    print("[SYSTEM] Done.")


if __name__ == "__main__":
    main()
