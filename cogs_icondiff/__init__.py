"""
icondiff package

Contains the DMI icon-sheet diff engine:
- Extract + parse the DMI description embedded in a PNG
- Slice, stitch and animate icon states from the sheet grid
- Hash + dedup rendered sprites
- Diff two sheets state by state and render a readable report
"""
