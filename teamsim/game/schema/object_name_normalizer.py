from poke_env.data.normalize import to_id_str


def normalize_name(name: str) -> str:
    """Normalize species, move and ability names to Showdown ids.

    Examples:
        >>> normalize_name("Will-O-Wisp")
        'willowisp'
        >>> normalize_name("Flutter Mane")
        'fluttermane'
    """
    return to_id_str(name)


def normalize_effect_name(effect: str) -> str:
    """Normalize a protocol effect string, dropping its "move:"/"ability:" tag.

    Examples:
        >>> normalize_effect_name("move: Trick Room")
        'trickroom'
        >>> normalize_effect_name("ability: Snow Warning")
        'snowwarning'
        >>> normalize_effect_name("Reflect")
        'reflect'
    """
    _, _, bare = effect.rpartition(": ")
    return normalize_name(bare)
