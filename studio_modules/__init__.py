"""
Studio modules: stateful services over the kernel records.

- ``templates`` -- phase template registry and editor
- ``budget``    -- budget lifecycle state machine
- ``project``   -- project stage progression and activity
"""
