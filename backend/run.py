from wordscramble import create_app, db

app = create_app()

if __name__ == '__main__':
    # Create tables and today's puzzle for a local database
    with app.app_context():
        db.create_all()
        puzzle = app.extensions['wordscramble'].puzzles.ensure_puzzle_for_date()
        print(f"Today's puzzle: {puzzle.letters} ({puzzle.possible_word_count} words)")
