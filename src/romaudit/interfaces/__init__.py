# SPDX-License-Identifier: MIT
"""Interface modules aggregating protocols for romaudit collaborators.

This package intentionally avoids importing concrete implementations to
preserve strict dependency inversion; import the specific interface modules
(e.g. ``romaudit.interfaces.catalog``) directly instead of relying on re-exports.
"""

__all__: tuple[str, ...] = ()
