# Unless noted otherwise, quotes are from https://en.wikiquote.org/
# (Creative Commons Attribution-ShareAlike License).
QUOTES: list[tuple[str, str]] = [
    ("Linus Torvalds", "Talk is cheap. Show me the code."),
    ("Linus Torvalds", "Making Linux GPL'd was definitely the best thing I ever did."),
    ("Linus Torvalds", "I am a lazy person, which is why I like open source, for other people to do work for me."),
    (
        "John D. Carmack",
        "Sharing the code just seems like The Right Thing to Do, it costs us rather little, "
        "but it benefits a lot of people in sometimes very significant ways.",
    ),
    (
        "Richard M. Stallman",
        "I consider that the golden rule requires that if I like a program I must share it "
        "with other people who like it.",
    ),
    ("Richard M. Stallman", "A hacker is someone who enjoys playful cleverness, not necessarily with computers."),
    (
        "Richard M. Stallman",
        "Once GNU is written, everyone will be able to obtain good system software free, just like air.",
    ),
    (
        "Richard M. Stallman",
        "While free software by any other name would give you the same freedom, it makes a big "
        "difference which name we use: different words convey different ideas.",
    ),
    (
        "Richard M. Stallman",
        "Geeks like to think that they can ignore politics, you can leave politics alone, "
        "but politics won't leave you alone.",
    ),
    (
        "Richard M. Stallman",
        "Fighting patents one by one will never eliminate the danger of software patents, "
        "any more than swatting mosquitoes will eliminate malaria.",
    ),
    (
        "Richard M. Stallman",
        "People sometimes ask me if it is a sin in the Church of Emacs to use vi. Using a free "
        "version of vi is not a sin; it is a penance. So happy hacking.",
    ),
    ("Richard M. Stallman", "I did write some code in Java once, but that was the island in Indonesia."),
    # https://twitter.com/IanColdwater/status/1292895288546545666
    ("Ian Coldwater", "Look it up baby, you'll see my name on it."),
    # https://twitter.com/jessfraz
    ("Jessie Frazelle", "Building stuff wouldn't be fun if it wasn't hard."),
    # https://jvns.ca/blog/good-questions/
    ("Julia Evans", "Asking good questions is a super important skill when writing software."),
    # https://github.com/jkenley/hacktoberquote
    ("Juan Veloz", "I based my entire career on collaboration- there is nothing better than succeeding with a team."),
    ("Helen Keller", "Alone we can do so little; together we can do so much."),
    ("Amit Ray", "Collaboration has no hierarchy. The Sun collaborates with soil to bring flowers on the earth."),
    ("Louisa May Alcott", "It takes two flints to make a fire."),
    (
        "Reid Hoffman",
        "No matter how brilliant your mind or strategy, if you're playing a solo game, "
        "you'll always lose out to a team.",
    ),
    (
        "Gabe Newell",
        "Late is just for a little while. Suck is forever right? We could try to force this thing "
        "out the door, but that's not the company we want to be.",
    ),
]
